"""Query building and request execution core.

Key Components:
    - ResourcePath: Deferred, immutable resource locator
    - EventPipeline: Ordered moments (pre, auth, send, parse, post)
    - Queryable: Path + pipeline, executed by awaiting a call
    - Batch: Deduplicating, serializing execution group
    - Behaviors: Reusable pipeline plugins (transport, auth, proxy, parsing)
"""

from termstore.core.errors import (
    TermStoreError,
    PathResolutionError,
    InvalidPathError,
    PipelineHandlerError,
    TransportError,
    RequestTimeoutError,
    HttpRequestError,
    ParseError,
    OrderingInconsistencyError,
)

from termstore.core.paths import ResourcePath

from termstore.core.pipeline import (
    EventPipeline,
    HandlerMode,
    Moment,
)

from termstore.core.batch import Batch

from termstore.core.queryable import (
    PipelinePolicy,
    Queryable,
    QueryableCollection,
    QueryableInstance,
    RequestInit,
)

from termstore.core.behaviors import (
    BearerToken,
    CopyHandlers,
    DefaultHeaders,
    DefaultParse,
    Defaults,
    FetchWithRetry,
    HttpxFetch,
    LogResults,
    Proxy,
    TextParse,
    Timeout,
)

from termstore.core.config import TermStoreConfig, get_config

__all__ = [
    "TermStoreError",
    "PathResolutionError",
    "InvalidPathError",
    "PipelineHandlerError",
    "TransportError",
    "RequestTimeoutError",
    "HttpRequestError",
    "ParseError",
    "OrderingInconsistencyError",
    "ResourcePath",
    "EventPipeline",
    "HandlerMode",
    "Moment",
    "Batch",
    "PipelinePolicy",
    "Queryable",
    "QueryableCollection",
    "QueryableInstance",
    "RequestInit",
    "BearerToken",
    "CopyHandlers",
    "DefaultHeaders",
    "DefaultParse",
    "Defaults",
    "FetchWithRetry",
    "HttpxFetch",
    "LogResults",
    "Proxy",
    "TextParse",
    "Timeout",
    "TermStoreConfig",
    "get_config",
]
