"""
EventChannel - Synchronous Dispatch Tests

Tests covering:
- Listener/trigger rendezvous in both registration orders
- Reply aggregation
- Trigger retention (cache) and retirement
- once / off lifecycle
- size / has queries
- Argument validation
"""
import re

import pytest
from unittest.mock import ANY, MagicMock

from eventchannel import EventChannel, InvalidArgumentError, Size


class TestRendezvous:
    """Listeners and triggers meet regardless of who registers first."""

    def test_listener_then_emit(self, channel):
        """on() then emit(): listener runs, on_reply gets the reply map."""
        fn = MagicMock(return_value="pong")
        cb = MagicMock()

        listener = channel.on("a", fn)
        trigger = channel.emit("a", 5, on_reply=cb)

        fn.assert_called_once_with(5, listener)
        cb.assert_called_once_with({listener.id: "pong"}, trigger)

    def test_wait_trigger_catches_later_listener(self, channel):
        """A wait=True trigger stays open for listeners registered afterwards."""
        cb = MagicMock()
        trigger = channel.emit("a", 5, wait=True, on_reply=cb)

        assert trigger.has()
        cb.assert_not_called()

        first = channel.on("a", lambda payload, handle: payload + 1)
        cb.assert_called_once_with({first.id: 6}, trigger)
        assert trigger.has()

        second = channel.on("a", lambda payload, handle: payload + 2)
        assert cb.call_count == 2
        assert cb.call_args.args[0] == {first.id: 6, second.id: 7}

    def test_unwaited_trigger_is_cached_until_matched(self, channel):
        """Without listeners an unwaited trigger is kept, then retired by the first match."""
        trigger = channel.emit("a", 1)
        assert trigger.has()
        assert channel.size("a").emit == 1

        fn = MagicMock(return_value=None)
        channel.on("a", fn)

        fn.assert_called_once_with(1, ANY)
        assert not trigger.has()

    def test_unmatched_trigger_is_never_purged(self, channel):
        """No listener ever arrives: the trigger lives until turned off."""
        trigger = channel.emit("a", 1)
        channel.emit("b", 2)
        channel.on("b", lambda payload, handle: None)

        assert trigger.has()
        trigger.off()
        assert not trigger.has()

    def test_matched_unwaited_trigger_is_retired(self, channel):
        channel.on("a", lambda payload, handle: None)
        trigger = channel.emit("a", 1)

        assert not trigger.has()
        assert channel.size("a") == Size(on=1, emit=0)

    def test_each_pair_dispatched_once(self, channel):
        """A later listener does not re-run triggers that were already retired."""
        calls = []
        channel.on("a", lambda payload, handle: calls.append(("first", payload)))
        channel.emit("a", 1)
        channel.on("a", lambda payload, handle: calls.append(("second", payload)))
        channel.emit("a", 2)

        assert calls == [("first", 1), ("first", 2), ("second", 2)]

    def test_replies_accumulate_per_trigger(self, channel):
        """Basic two-way exchange: ids, payloads and reply maps in order."""
        log = []

        def listener(name):
            def callback(payload, handle):
                log.append((name, payload, handle.id))
                return f"{name}-reply"
            return callback

        def on_reply(name):
            def callback(replies, handle):
                log.append((name, list(replies.items()), handle.id))
            return callback

        log.append(("on-1", channel.on("a", listener("on-1")).id))
        log.append(("emit-1", channel.emit("a", "p1", on_reply=on_reply("emit-1")).id))
        log.append(("on-2", channel.on("a", listener("on-2")).id))
        log.append(("emit-2", channel.emit("a", "p2", on_reply=on_reply("emit-2")).id))
        log.append(("emit-3", channel.emit("a", "p3").id))

        assert log == [
            ("on-1", 1),
            ("on-1", "p1", 1),
            ("emit-1", [(1, "on-1-reply")], 2),
            ("emit-1", 2),
            ("on-2", 3),
            ("on-1", "p2", 1),
            ("emit-2", [(1, "on-1-reply")], 4),
            ("on-2", "p2", 3),
            ("emit-2", [(1, "on-1-reply"), (3, "on-2-reply")], 4),
            ("emit-2", 4),
            ("on-1", "p3", 1),
            ("on-2", "p3", 3),
            ("emit-3", 5),
        ]

    def test_on_reply_receives_copy(self, channel):
        """Mutating the map handed to on_reply does not corrupt later deliveries."""
        seen = []

        def on_reply(replies, handle):
            seen.append(dict(replies))
            replies.clear()

        first = channel.on("a", lambda payload, handle: 1)
        second = channel.on("a", lambda payload, handle: 2)
        channel.emit("a", None, on_reply=on_reply)

        assert seen == [{first.id: 1}, {first.id: 1, second.id: 2}]

    def test_events_are_independent(self, channel):
        fn = MagicMock(return_value=None)
        channel.on("a", fn)
        channel.emit("b", 1)

        fn.assert_not_called()
        assert channel.size("b").emit == 1


class TestOnce:
    """once=True lifecycle for listeners and triggers."""

    def test_once_listener(self, channel):
        """Only the first emit reaches a once listener."""
        fn = MagicMock(return_value=None)
        channel.on("a", fn, once=True)
        channel.emit("a", 1)
        channel.emit("a", 2)

        fn.assert_called_once_with(1, ANY)
        assert channel.size("a").on == 0

    def test_once_shorthand(self, channel):
        fn = MagicMock(return_value=None)
        listener = channel.once("a", fn)
        channel.emit("a", 1)

        assert not listener.has()

    def test_once_listener_consumes_single_pending_trigger(self, channel):
        """A once listener released after its first pending trigger leaves the rest cached."""
        first = channel.emit("a", 1)
        second = channel.emit("a", 2)
        fn = MagicMock(return_value=None)

        channel.on("a", fn, once=True)

        fn.assert_called_once_with(1, ANY)
        assert not first.has()
        assert second.has()

    def test_once_trigger_stops_after_first_reply(self, channel):
        first = MagicMock(return_value="one")
        second = MagicMock(return_value="two")
        cb = MagicMock()
        channel.on("a", first)
        channel.on("a", second)

        trigger = channel.emit("a", 1, once=True, on_reply=cb)

        first.assert_called_once()
        second.assert_not_called()
        assert cb.call_count == 1
        assert not trigger.has()

    def test_once_wait_trigger(self, channel):
        trigger = channel.emit("a", 1, wait=True, once=True)
        first = MagicMock(return_value=None)
        second = MagicMock(return_value=None)

        channel.on("a", first)
        channel.on("a", second)

        first.assert_called_once()
        second.assert_not_called()
        assert not trigger.has()


class TestOff:
    """Removal by id, by event name and by pattern."""

    def test_off_by_id(self, channel):
        listener = channel.on("a", lambda payload, handle: None)

        assert channel.off(listener.id) == [listener.id]
        assert not listener.has()

    def test_off_is_idempotent(self, channel):
        listener = channel.on("a", lambda payload, handle: None)
        listener.off()
        listener.off()

        assert channel.off(listener.id) == []
        assert channel.off(999) == []

    def test_off_by_event_and_kind(self, channel):
        listener = channel.on("a", lambda payload, handle: None)
        trigger = channel.emit("a", 1, wait=True)

        assert channel.off("a", "emit") == [trigger.id]
        assert listener.has()
        assert channel.off("a", "on") == [listener.id]
        assert channel.size("a").count == 0

    def test_off_all_by_pattern(self, channel):
        saved = channel.on("file.saved", lambda payload, handle: None)
        opened = channel.emit("file.opened", 1)
        other = channel.on("user.login", lambda payload, handle: None)

        removed = channel.off(re.compile(r"^file\."))

        assert sorted(removed) == sorted([saved.id, opened.id])
        assert other.has()

    def test_off_invalid_kind(self, channel):
        with pytest.raises(InvalidArgumentError):
            channel.off("a", "listeners")

    def test_bool_is_not_an_id(self, channel):
        with pytest.raises(InvalidArgumentError):
            channel.off(True)

    def test_self_off_suppresses_reply(self, channel):
        """A listener that removes itself inside its callback produces no reply."""
        cb = MagicMock()

        def leave(payload, handle):
            handle.off()
            return "ignored"

        channel.on("a", leave)
        channel.emit("a", 1, on_reply=cb)

        cb.assert_not_called()

    def test_clear_removes_everything(self, channel):
        listener = channel.on("a", lambda payload, handle: None)
        trigger = channel.emit("b", 1)
        hook = channel.hook("a", lambda event, handle: None)

        channel.clear()

        assert not any(r.has() for r in (listener, trigger, hook))


class TestQueries:

    def test_ids_are_shared_and_increasing(self, channel):
        listener = channel.on("a", lambda payload, handle: None)
        trigger = channel.emit("b", 1)
        hook = channel.hook("a", lambda event, handle: None)

        assert (listener.id, trigger.id, hook.id) == (1, 2, 3)

    def test_ids_are_per_channel(self):
        assert EventChannel().on("a", print).id == 1
        assert EventChannel().on("a", print).id == 1

    def test_size_by_event(self, channel):
        channel.on("a", lambda payload, handle: None)
        channel.on("a", lambda payload, handle: None)
        channel.emit("a", 1, wait=True)

        assert channel.size("a") == Size(on=2, emit=1)
        assert channel.size(re.compile("a|b")).count == 3
        assert channel.size("missing").count == 0

    def test_size_by_id(self, channel):
        listener = channel.on("a", lambda payload, handle: None)
        hook = channel.hook("a", lambda event, handle: None)

        assert channel.size(listener.id) == Size(on=1, emit=0, hook=0)
        assert channel.size(hook.id).count == 1
        assert channel.size(12345).count == 0

    def test_has(self, channel):
        trigger = channel.emit("a", 1)
        assert channel.has(trigger.id)
        assert not channel.has(trigger.id + 1)


class TestValidation:
    """Invalid arguments fail synchronously at the call site."""

    @pytest.mark.parametrize("event", ["", None, 42, re.compile("a")])
    def test_bad_event(self, channel, event):
        with pytest.raises(InvalidArgumentError):
            channel.on(event, lambda payload, handle: None)
        with pytest.raises(InvalidArgumentError):
            channel.emit(event, 1)

    def test_non_callable_callback(self, channel):
        with pytest.raises(InvalidArgumentError):
            channel.on("a", "not callable")
        with pytest.raises(InvalidArgumentError):
            channel.emit("a", 1, on_reply=42)

    def test_non_bool_flag(self, channel):
        with pytest.raises(InvalidArgumentError):
            channel.on("a", print, wait="yes")
        with pytest.raises(InvalidArgumentError):
            channel.emit("a", 1, once=1)

    def test_invalid_argument_is_value_error(self, channel):
        with pytest.raises(ValueError):
            channel.on("a", None)

    def test_nothing_registered_on_failure(self, channel):
        with pytest.raises(InvalidArgumentError):
            channel.on("a", None)
        assert channel.on("a", print).id == 1


class TestListenerErrors:

    def test_failing_listener_does_not_stop_dispatch(self, channel, caplog):
        """A raising listener is logged, gives no reply, and others still run."""
        def broken(payload, handle):
            raise ValueError("boom")

        channel.on("a", broken)
        working = channel.on("a", lambda payload, handle: "ok")
        cb = MagicMock()

        channel.emit("a", 1, on_reply=cb)

        cb.assert_called_once_with({working.id: "ok"}, ANY)
        assert "boom" in caplog.text

    def test_failing_on_reply_is_logged(self, channel, caplog):
        def broken(replies, handle):
            raise RuntimeError("reply failed")

        second = MagicMock(return_value=None)
        channel.on("a", lambda payload, handle: 1)
        channel.on("a", second)

        channel.emit("a", 1, on_reply=broken)

        second.assert_called_once()
        assert "reply failed" in caplog.text
