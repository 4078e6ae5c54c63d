"""Tests for the event pipeline.

Covers handler ordering, state threading, replace semantics, error
propagation and snapshot behavior during in-flight runs.
"""

import pytest

from termstore.core.errors import PipelineHandlerError
from termstore.core.pipeline import EventPipeline, HandlerMode, Moment


def recording_handler(name, calls, tag=None):
    """Handler that records its call and appends its tag to the result."""

    async def handler(url, init, result):
        calls.append((name, (url, init, result)))
        return url, init, (result or []) + [tag or name]

    handler.__qualname__ = name
    return handler


class TestRegistration:
    """Handler registration."""

    def setup_method(self):
        self.pipeline = EventPipeline()

    def test_new_pipeline_is_empty(self):
        for moment in Moment:
            assert self.pipeline.handlers(moment) == []
            assert not self.pipeline.has_handlers(moment)

    def test_on_accessor_registers(self):
        calls = []
        handler = recording_handler("h1", calls)
        self.pipeline.on.auth(handler)

        assert self.pipeline.on.auth.to_list() == [handler]
        assert len(self.pipeline.on.auth) == 1
        assert self.pipeline.handlers(Moment.PRE) == []

    def test_register_accepts_moment_names(self):
        handler = recording_handler("h1", [])
        self.pipeline.register("post", handler, "append")
        assert self.pipeline.handlers(Moment.POST) == [handler]

    def test_unknown_moment_rejected(self):
        with pytest.raises(ValueError):
            self.pipeline.register("bogus", recording_handler("h1", []))

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            self.pipeline.register(Moment.PRE, recording_handler("h1", []), "prepend")

    def test_non_callable_rejected(self):
        with pytest.raises(ValueError):
            self.pipeline.register(Moment.PRE, "not a handler")

    def test_replace_removes_previous_handlers(self):
        first = recording_handler("first", [])
        second = recording_handler("second", [])
        replacement = recording_handler("replacement", [])

        self.pipeline.on.send(first)
        self.pipeline.on.send(second)
        self.pipeline.on.send(replacement, mode=HandlerMode.REPLACE)

        assert self.pipeline.handlers(Moment.SEND) == [replacement]

    def test_replace_only_affects_its_moment(self):
        pre = recording_handler("pre", [])
        self.pipeline.on.pre(pre)
        self.pipeline.on.send(recording_handler("send", []), mode="replace")

        assert self.pipeline.handlers(Moment.PRE) == [pre]

    def test_clear(self):
        self.pipeline.on.parse(recording_handler("p", []))
        self.pipeline.on.parse.clear()
        assert self.pipeline.handlers(Moment.PARSE) == []

    def test_copy_is_independent(self):
        handler = recording_handler("h1", [])
        self.pipeline.on.pre(handler)
        clone = self.pipeline.copy()

        clone.on.pre(recording_handler("h2", []))
        self.pipeline.on.auth(recording_handler("h3", []))

        assert self.pipeline.handlers(Moment.PRE) == [handler]
        assert len(clone.handlers(Moment.PRE)) == 2
        assert clone.handlers(Moment.AUTH) == []


class TestRun:
    """Running a moment."""

    def setup_method(self):
        self.pipeline = EventPipeline()

    @pytest.mark.asyncio
    async def test_handlers_run_in_registration_order(self):
        """h1 runs before h2 and h2 receives h1's returned tuple."""
        calls = []
        self.pipeline.on.pre(recording_handler("h1", calls))
        self.pipeline.on.pre(recording_handler("h2", calls))

        url, init, result = await self.pipeline.run(Moment.PRE, "https://x", {}, None)

        assert [name for name, _ in calls] == ["h1", "h2"]
        assert calls[0][1] == ("https://x", {}, None)
        assert calls[1][1] == ("https://x", {}, ["h1"])
        assert result == ["h1", "h2"]

    @pytest.mark.asyncio
    async def test_handler_can_replace_url_and_init(self):

        async def rewrite(url, init, result):
            return url + "/rewritten", {"method": "POST"}, result

        self.pipeline.on.pre(rewrite)
        url, init, result = await self.pipeline.run(Moment.PRE, "https://x", {}, None)

        assert url == "https://x/rewritten"
        assert init == {"method": "POST"}
        assert result is None

    @pytest.mark.asyncio
    async def test_sync_handlers_are_accepted(self):

        def plain(url, init, result):
            return url, init, "plain"

        self.pipeline.on.parse(plain)
        _, _, result = await self.pipeline.run(Moment.PARSE, "u", {}, None)
        assert result == "plain"

    @pytest.mark.asyncio
    async def test_empty_moment_passes_state_through(self):
        state = await self.pipeline.run(Moment.POST, "u", {"a": 1}, 42)
        assert state == ("u", {"a": 1}, 42)

    @pytest.mark.asyncio
    async def test_after_replace_only_new_handler_runs(self):
        calls = []
        self.pipeline.on.pre(recording_handler("old", calls))
        self.pipeline.on.pre(recording_handler("new", calls), mode="replace")

        await self.pipeline.run(Moment.PRE, "u", {}, None)
        assert [name for name, _ in calls] == ["new"]

    @pytest.mark.asyncio
    async def test_bad_return_value_raises(self):

        async def broken(url, init, result):
            return result

        self.pipeline.on.parse(broken)

        with pytest.raises(PipelineHandlerError) as exc_info:
            await self.pipeline.run(Moment.PARSE, "u", {}, None)

        assert exc_info.value.moment == "parse"
        assert "broken" in exc_info.value.handler

    @pytest.mark.asyncio
    async def test_raising_handler_aborts_run(self):
        calls = []
        error = RuntimeError("boom")

        async def failing(url, init, result):
            raise error

        self.pipeline.on.send(failing)
        self.pipeline.on.send(recording_handler("after", calls))

        with pytest.raises(RuntimeError) as exc_info:
            await self.pipeline.run(Moment.SEND, "u", {}, None)

        assert exc_info.value is error
        assert calls == []

    @pytest.mark.asyncio
    async def test_registration_during_run_does_not_affect_it(self):
        """A run works on a snapshot of the handler list."""
        calls = []
        late = recording_handler("late", calls)

        async def registers_late(url, init, result):
            calls.append(("early", None))
            self.pipeline.on.pre(late)
            return url, init, result

        self.pipeline.on.pre(registers_late)

        await self.pipeline.run(Moment.PRE, "u", {}, None)
        assert [name for name, _ in calls] == ["early"]

        calls.clear()
        self.pipeline.on.pre.clear()
        self.pipeline.on.pre(late)
        await self.pipeline.run(Moment.PRE, "u", {}, None)
        assert [name for name, _ in calls] == ["late"]

    def test_repr_counts_handlers(self):
        self.pipeline.on.auth(recording_handler("a", []))
        assert "auth=1" in repr(self.pipeline)
