"""Reusable behaviors applied with ``Queryable.using(...)``.

A behavior is a callable receiving a queryable and registering handlers on
its pipeline. Because children inherit their parent's pipeline by default,
applying a behavior to a root applies it to every request derived from it.

Example:
    >>> store = TermStore("https://contoso.sharepoint.com/sites/dev")
    >>> store.using(Defaults(), BearerToken(token), Proxy("http://127.0.0.1:8888"))
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Union

import httpx

from termstore.core.config import TermStoreConfig, get_config
from termstore.core.parsers import json_parse, text_parse
from termstore.core.pipeline import MOMENT_ORDER, HandlerMode, Moment
from termstore.core.transport import HttpxSend, RetryingHttpxSend

logger = logging.getLogger(__name__)

Behavior = Callable[[Any], Any]
TokenSource = Union[str, Callable[[], Union[str, Awaitable[str]]]]


def Proxy(proxy_init: Any) -> Behavior:
    """Route requests through a proxy.

    Args:
        proxy_init: Proxy URL (an ``httpx.Proxy`` is built from it) or a
                    ready-made proxy object used as-is
    """
    proxy = httpx.Proxy(proxy_init) if isinstance(proxy_init, str) else proxy_init

    def behavior(instance):

        async def add_proxy(url, init, result):
            init.proxy = proxy
            return url, init, result

        instance.on.pre(add_proxy)
        return instance

    return behavior


def BearerToken(token: TokenSource) -> Behavior:
    """Add an ``Authorization: Bearer`` header in the auth moment.

    Args:
        token: Token string, or a (sync or async) callable returning one
               per request so expiring tokens can be refreshed
    """

    def behavior(instance):

        async def add_token(url, init, result):
            value = token() if callable(token) else token
            if inspect.isawaitable(value):
                value = await value
            init.headers["Authorization"] = f"Bearer {value}"
            return url, init, result

        instance.on.auth(add_token)
        return instance

    return behavior


def DefaultHeaders(headers: Optional[Dict[str, str]] = None, config: Optional[TermStoreConfig] = None) -> Behavior:
    """Set Accept and User-Agent from configuration plus any extra headers."""
    config = config or get_config()
    defaults = {"Accept": config.accept, "User-Agent": config.user_agent}
    defaults.update(headers or {})

    def behavior(instance):

        async def add_headers(url, init, result):
            init.headers.update(defaults)
            return url, init, result

        instance.on.pre(add_headers)
        return instance

    return behavior


def Timeout(seconds: float) -> Behavior:
    """Give each request a deadline enforced by the send moment."""

    def behavior(instance):

        async def set_deadline(url, init, result):
            init.timeout = seconds
            return url, init, result

        instance.on.pre(set_deadline)
        return instance

    return behavior


def HttpxFetch(
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    replace: bool = True,
) -> Behavior:
    """Install the plain httpx transport on the send moment."""
    sender = HttpxSend(client=client, transport=transport)
    mode = HandlerMode.REPLACE if replace else HandlerMode.APPEND

    def behavior(instance):
        instance.on.send(sender, mode=mode)
        return instance

    return behavior


def FetchWithRetry(
    retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    replace: bool = True,
) -> Behavior:
    """Install the retrying httpx transport on the send moment.

    Defaults for retries and delay come from configuration.
    """
    if retries is None or base_delay is None:
        config = get_config()
        retries = config.max_retries if retries is None else retries
        base_delay = config.retry_base_delay if base_delay is None else base_delay

    sender = RetryingHttpxSend(
        retries=retries,
        base_delay=base_delay,
        client=client,
        transport=transport,
    )
    mode = HandlerMode.REPLACE if replace else HandlerMode.APPEND

    def behavior(instance):
        instance.on.send(sender, mode=mode)
        return instance

    return behavior


def DefaultParse() -> Behavior:
    """Parse JSON bodies into typed values (replaces other parse handlers)."""

    def behavior(instance):
        instance.on.parse(json_parse, mode=HandlerMode.REPLACE)
        return instance

    return behavior


def TextParse() -> Behavior:
    """Return bodies as text (replaces other parse handlers)."""

    def behavior(instance):
        instance.on.parse(text_parse, mode=HandlerMode.REPLACE)
        return instance

    return behavior


def LogResults(level: int = logging.DEBUG) -> Behavior:
    """Log a short description of every result in the post moment."""

    def behavior(instance):

        async def log_result(url, init, result):
            if isinstance(result, list):
                summary = f"{len(result)} item(s)"
            else:
                summary = type(result).__name__
            logger.log(level, f"{init.method} {url} -> {summary}")
            return url, init, result

        instance.on.post(log_result)
        return instance

    return behavior


def CopyHandlers(source: Any, moments: Iterable[Union[Moment, str]] = MOMENT_ORDER) -> Behavior:
    """Append the handlers of ``source`` to the target, moment by moment.

    Typical use is sharing auth between two independently built roots:

        >>> other.using(CopyHandlers(configured, [Moment.AUTH]))
    """
    moments = [Moment(m) for m in moments]

    def behavior(instance):
        for moment in moments:
            for handler in source.pipeline.handlers(moment):
                instance.pipeline.register(moment, handler)
        return instance

    return behavior


def Defaults(
    config: Optional[TermStoreConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Behavior:
    """Standard setup: headers, deadline, optional proxy, transport, JSON parsing.

    The retrying transport is used when ``max_retries`` is above zero.

    Raises:
        ValueError: If a proxy is configured together with a shared client
    """
    config = config or get_config()
    if config.proxy_url and client is not None:
        raise ValueError(
            "proxy_url cannot be combined with a shared client; "
            "pass proxy= when creating the httpx.AsyncClient"
        )

    def behavior(instance):
        instance.using(DefaultHeaders(config=config), Timeout(config.request_timeout))

        if config.proxy_url:
            instance.using(Proxy(config.proxy_url))

        if config.max_retries > 0:
            instance.using(FetchWithRetry(
                retries=config.max_retries,
                base_delay=config.retry_base_delay,
                client=client,
                transport=transport,
            ))
        else:
            instance.using(HttpxFetch(client=client, transport=transport))

        instance.using(DefaultParse())
        return instance

    return behavior
