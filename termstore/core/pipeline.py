"""Event pipeline that request execution flows through.

A pipeline holds five ordered moments. Each moment is a list of handlers
that receive the in-flight state tuple (url, init, result) and return the
(possibly replaced) tuple for the next handler.

Design Principles:
- Registration order: handlers run in the order they were added
- Replace or append: a caller can take sole control of a moment
- Fail-fast: a raising handler aborts the run and the error propagates
- Snapshot runs: a run works on a copy of the handler list, so registering
  handlers while requests are in flight never affects those requests
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from termstore.core.errors import PipelineHandlerError

logger = logging.getLogger(__name__)

State = Tuple[Any, Any, Any]
Handler = Callable[[Any, Any, Any], Any]


class Moment(str, Enum):
    """Named extension points, in execution order."""
    PRE = "pre"
    AUTH = "auth"
    SEND = "send"
    PARSE = "parse"
    POST = "post"


MOMENT_ORDER: Tuple[Moment, ...] = (
    Moment.PRE,
    Moment.AUTH,
    Moment.SEND,
    Moment.PARSE,
    Moment.POST,
)


class HandlerMode(str, Enum):
    """How a handler is added to a moment."""
    APPEND = "append"
    REPLACE = "replace"


def handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or handler.__class__.__name__


class MomentAccessor:
    """Registration surface for a single moment.

    Calling the accessor registers a handler:

        >>> pipeline.on.pre(add_proxy)
        >>> pipeline.on.send(fetch_with_retry, mode="replace")
    """

    def __init__(self, pipeline: EventPipeline, moment: Moment):
        self._pipeline = pipeline
        self._moment = moment

    def __call__(self, handler: Handler, mode: str = HandlerMode.APPEND) -> EventPipeline:
        self._pipeline.register(self._moment, handler, mode)
        return self._pipeline

    def to_list(self) -> List[Handler]:
        """Return the handlers currently registered on this moment."""
        return self._pipeline.handlers(self._moment)

    def clear(self) -> None:
        self._pipeline.clear(self._moment)

    def __len__(self) -> int:
        return len(self._pipeline.handlers(self._moment))


class On:
    """Attribute-style access to every moment of a pipeline."""

    def __init__(self, pipeline: EventPipeline):
        self.pre = MomentAccessor(pipeline, Moment.PRE)
        self.auth = MomentAccessor(pipeline, Moment.AUTH)
        self.send = MomentAccessor(pipeline, Moment.SEND)
        self.parse = MomentAccessor(pipeline, Moment.PARSE)
        self.post = MomentAccessor(pipeline, Moment.POST)


class EventPipeline:
    """Ordered handler registrations across all moments.

    The pipeline object is the only state shared between queryables: children
    that inherit a pipeline hold a reference to the same object, so a handler
    registered once applies to every request made through it.

    Example:
        >>> pipeline = EventPipeline()
        >>> pipeline.on.auth(add_token)
        >>> url, init, result = await pipeline.run(Moment.AUTH, url, init, None)
    """

    def __init__(self):
        self._handlers: Dict[Moment, List[Handler]] = {moment: [] for moment in MOMENT_ORDER}
        self.on = On(self)

    def register(self, moment: Moment, handler: Handler, mode: str = HandlerMode.APPEND) -> None:
        """Register a handler on a moment.

        Args:
            moment: Moment (or its name) to register on
            handler: Callable taking and returning (url, init, result)
            mode: "append" adds after existing handlers, "replace" removes
                  them first

        Raises:
            ValueError: If the moment or mode is unknown
        """
        moment = Moment(moment)
        mode = HandlerMode(mode)

        if not callable(handler):
            raise ValueError(f"Handler for moment '{moment.value}' must be callable")

        if mode == HandlerMode.REPLACE:
            self._handlers[moment] = []

        # Rebinding the list keeps snapshots taken by in-flight runs intact
        self._handlers[moment] = self._handlers[moment] + [handler]
        logger.debug(f"Registered {handler_name(handler)} on {moment.value} ({mode.value})")

    def handlers(self, moment: Moment) -> List[Handler]:
        return list(self._handlers[Moment(moment)])

    def clear(self, moment: Moment) -> None:
        self._handlers[Moment(moment)] = []

    def has_handlers(self, moment: Moment) -> bool:
        return bool(self._handlers[Moment(moment)])

    def copy(self) -> EventPipeline:
        """Return an independent pipeline with the same registrations."""
        clone = EventPipeline()
        for moment in MOMENT_ORDER:
            clone._handlers[moment] = list(self._handlers[moment])
        return clone

    async def run(self, moment: Moment, url: Any, init: Any, result: Any) -> State:
        """Run every handler of a moment in registration order.

        Each handler receives the tuple returned by the previous one. A
        handler may be a coroutine function or a plain callable.

        Returns:
            The final (url, init, result) tuple

        Raises:
            PipelineHandlerError: If a handler does not return a 3-tuple
            Exception: Whatever a handler raises, unchanged
        """
        moment = Moment(moment)
        snapshot = tuple(self._handlers[moment])
        state: State = (url, init, result)

        for handler in snapshot:
            outcome = handler(*state)
            if inspect.isawaitable(outcome):
                outcome = await outcome

            if not isinstance(outcome, (tuple, list)) or len(outcome) != 3:
                raise PipelineHandlerError(
                    f"Handler {handler_name(handler)} on moment '{moment.value}' "
                    f"must return (url, init, result), got {type(outcome).__name__}",
                    moment=moment.value,
                    handler=handler_name(handler),
                )
            state = tuple(outcome)

        return state

    def __repr__(self) -> str:
        counts = ", ".join(f"{m.value}={len(self._handlers[m])}" for m in MOMENT_ORDER)
        return f"EventPipeline({counts})"
