"""Lazy, composable queryables.

A Queryable couples a deferred ResourcePath with an EventPipeline. Building
a chain of queryables never touches the network; awaiting a call on one
runs the request lifecycle:

    resolve URL -> build RequestInit -> pre -> auth -> send -> parse -> post

Child queryables derive their path from their parent. Which pipeline a child
uses is decided by an explicit PipelinePolicy:

- INHERIT: share the parent's pipeline object (default)
- COPY: new pipeline holding a snapshot of the parent's handlers
- FRESH: new, empty pipeline
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union

import httpx

from termstore.core.batch import Batch
from termstore.core.errors import PipelineHandlerError
from termstore.core.paths import ResourcePath, combine
from termstore.core.pipeline import EventPipeline, Moment, On

logger = logging.getLogger(__name__)

Q = TypeVar("Q", bound="Queryable")

DEFAULT_HEADERS = {"Accept": "application/json"}


class PipelinePolicy(str, Enum):
    """Which pipeline a derived queryable receives."""
    INHERIT = "inherit"
    COPY = "copy"
    FRESH = "fresh"


@dataclass
class RequestInit:
    """Per-invocation request configuration, mutable by pipeline handlers.

    Attributes:
        method: HTTP method
        headers: Request headers
        json: JSON body (writes only)
        content: Raw body (writes only)
        proxy: Proxy URL or httpx.Proxy attached by a pre handler
        timeout: Deadline in seconds for the send moment
        batch_id: Id of the enclosing batch, if any
        response_model: Type the parse moment validates the body against
        extensions: Free-form values handlers pass to each other
    """
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    json: Any = None
    content: Optional[bytes] = None
    proxy: Any = None
    timeout: Optional[float] = None
    batch_id: Optional[str] = None
    response_model: Any = None
    extensions: Dict[str, Any] = field(default_factory=dict)


def resolve_pipeline(source: Optional[EventPipeline], policy: PipelinePolicy) -> EventPipeline:
    policy = PipelinePolicy(policy)
    if source is None or policy == PipelinePolicy.FRESH:
        return EventPipeline()
    if policy == PipelinePolicy.COPY:
        return source.copy()
    return source


class Queryable:
    """A deferred, chainable representation of one remote resource.

    Subclasses describe concrete endpoints. They set ``default_path`` to
    the segment appended when no explicit segment is given, and
    ``response_model`` to the type results are validated against.

    Example:
        >>> web = Queryable("https://contoso.sharepoint.com/sites/dev", "_api/web")
        >>> web.using(Defaults())
        >>> info = await web()
    """

    default_path: Optional[str] = None
    response_model: Any = None

    def __init__(
        self,
        base: Union[str, "Queryable"],
        path: Optional[str] = None,
        *,
        policy: PipelinePolicy = PipelinePolicy.INHERIT,
        pipeline: Optional[EventPipeline] = None,
        batch: Optional[Batch] = None,
    ):
        """
        Args:
            base: Absolute URL for a root, or the parent queryable
            path: Segment appended to the base; defaults to ``default_path``
            policy: Pipeline policy applied when base is a queryable
            pipeline: Explicit pipeline, overriding the policy
            batch: Batch handle; inherited from a parent queryable when omitted
        """
        segment = path if path is not None else self.default_path

        if isinstance(base, Queryable):
            self.path = base.path.child(segment) if segment else base.path
            self.pipeline = pipeline if pipeline is not None else resolve_pipeline(base.pipeline, policy)
            self.batch = batch if batch is not None else base.batch
        else:
            root = ResourcePath.root(base)
            self.path = root.child(segment) if segment else root
            self.pipeline = pipeline if pipeline is not None else EventPipeline()
            self.batch = batch

        self.query: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    @property
    def on(self) -> On:
        """Registration surface of this queryable's pipeline."""
        return self.pipeline.on

    def using(self: Q, *behaviors: Callable[["Queryable"], Any]) -> Q:
        """Apply behaviors (plugins) to this queryable's pipeline.

        A behavior is a callable receiving the queryable; it usually
        registers handlers through ``instance.on``.
        """
        for behavior in behaviors:
            behavior(self)
        return self

    def clone(
        self,
        factory: Type[Q],
        path: Optional[str] = None,
        *,
        policy: PipelinePolicy = PipelinePolicy.INHERIT,
        include_query: bool = False,
    ) -> Q:
        """Derive a new queryable of type ``factory`` below this one.

        Args:
            factory: Queryable subclass to build
            path: Segment to append (may contain several segments)
            policy: Pipeline policy for the new queryable
            include_query: Carry this queryable's query options over
        """
        child = factory(self, path, policy=policy)
        if include_query:
            child.query = dict(self.query)
        return child

    def in_batch(self: Q, batch: Batch) -> Q:
        """Return a copy of this queryable that executes inside ``batch``."""
        copy = self._copy()
        copy.batch = batch
        return copy

    def _copy(self: Q) -> Q:
        copy = self.__class__.__new__(self.__class__)
        copy.__dict__.update(self.__dict__)
        copy.query = dict(self.query)
        return copy

    def _with_query(self: Q, key: str, value: str) -> Q:
        copy = self._copy()
        copy.query[key] = value
        return copy

    def select(self: Q, *fields: str) -> Q:
        """Limit the returned fields ($select)."""
        return self._with_query("$select", ",".join(fields)) if fields else self

    def expand(self: Q, *fields: str) -> Q:
        """Expand related entities ($expand)."""
        return self._with_query("$expand", ",".join(fields)) if fields else self

    def to_url(self) -> str:
        """Absolute URL including query options."""
        url = httpx.URL(self.path.resolve())
        if self.query:
            url = url.copy_merge_params(self.query)
        return str(url)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _build_init(self) -> RequestInit:
        init = RequestInit(response_model=self.response_model)
        if self.batch is not None:
            init.batch_id = self.batch.id
        return init

    async def __call__(self, init: Optional[RequestInit] = None) -> Any:
        """Run the request lifecycle and return the parsed result.

        Args:
            init: Request configuration overriding the GET default; it is
                  copied, so one init can be reused across calls

        Raises:
            PipelineHandlerError: If no send handler is registered
            Exception: Whatever a handler raises, unchanged
        """
        url = self.to_url()
        if init is None:
            init = self._build_init()
        else:
            init = replace(init, headers=dict(init.headers), extensions=dict(init.extensions))
            if init.response_model is None:
                init.response_model = self.response_model
            if self.batch is not None:
                init.batch_id = self.batch.id

        if not self.pipeline.has_handlers(Moment.SEND):
            raise PipelineHandlerError(
                f"No send handler registered for {url}",
                moment=Moment.SEND.value,
            )

        logger.debug(f"{init.method} {url}: starting request lifecycle")

        url, init, result = await self.pipeline.run(Moment.PRE, url, init, None)
        url, init, result = await self.pipeline.run(Moment.AUTH, url, init, result)

        if self.batch is not None:
            key = Batch.request_key(url, init, self.pipeline)

            async def send() -> Any:
                return await self.pipeline.run(Moment.SEND, url, init, result)

            url, init, result = await self.batch.submit(key, send)
        else:
            url, init, result = await self.pipeline.run(Moment.SEND, url, init, result)

        url, init, result = await self.pipeline.run(Moment.PARSE, url, init, result)
        url, init, result = await self.pipeline.run(Moment.POST, url, init, result)

        logger.debug(f"{init.method} {url}: request lifecycle complete")
        return result

    def __repr__(self) -> str:
        try:
            location = self.to_url()
        except Exception:
            location = "<unresolvable>"
        return f"{self.__class__.__name__}({location})"


class QueryableInstance(Queryable):
    """Queryable addressing a single entity."""
    pass


class QueryableCollection(Queryable):
    """Queryable addressing a collection of entities."""

    def filter(self: Q, expression: str) -> Q:
        """Filter the collection ($filter)."""
        return self._with_query("$filter", expression)

    def top(self: Q, count: int) -> Q:
        """Limit the number of returned entities ($top)."""
        return self._with_query("$top", str(count))

    def orderby(self: Q, field_name: str, ascending: bool = True) -> Q:
        """Order the collection ($orderby); repeated calls add keys."""
        clause = f"{field_name} {'asc' if ascending else 'desc'}"
        existing = self.query.get("$orderby")
        return self._with_query("$orderby", f"{existing},{clause}" if existing else clause)


def join_segments(*segments: str) -> str:
    """Join relative segments, e.g. ``join_segments("terms", term_id)``."""
    return combine("", *segments).lstrip("/")
