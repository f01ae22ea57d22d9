"""Tests for the custom event registry."""

import pytest

from udpnode.errors import InvalidArgumentError
from udpnode.events import EventRegistry


def _noop(env, remote):
    pass


class TestEventRegistryOn:
    def test_on_returns_index(self):
        reg = EventRegistry()
        assert reg.on("hello", _noop) == 0
        assert reg.on("hello", lambda e, r: None) == 1
        assert reg.on("other", _noop) == 0

    def test_handlers_keep_registration_order(self):
        reg = EventRegistry()
        first, second = (lambda e, r: 1), (lambda e, r: 2)
        reg.on("hello", first)
        reg.on("hello", second)
        assert reg.handlers("hello") == (first, second)

    def test_same_handler_twice(self):
        reg = EventRegistry()
        reg.on("hello", _noop)
        reg.on("hello", _noop)
        assert len(reg.handlers("hello")) == 2

    @pytest.mark.parametrize("event_type", ["", None, 3])
    def test_on_rejects_bad_type(self, event_type):
        with pytest.raises(InvalidArgumentError):
            EventRegistry().on(event_type, _noop)

    def test_on_rejects_missing_handler(self):
        with pytest.raises(InvalidArgumentError, match="Missing"):
            EventRegistry().on("hello", None)

    def test_on_rejects_non_callable(self):
        with pytest.raises(InvalidArgumentError, match="callable"):
            EventRegistry().on("hello", "not a function")

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            EventRegistry().on("", _noop)


class TestEventRegistryOff:
    def test_off_without_index_deletes_entry(self):
        reg = EventRegistry()
        reg.on("hello", _noop)
        reg.on("hello", _noop)
        reg.off("hello")
        assert reg.is_registered("hello") is False
        assert reg.handlers("hello") == ()
        assert "hello" not in reg.snapshot()

    def test_off_with_index_removes_one(self):
        reg = EventRegistry()
        first, second = (lambda e, r: 1), (lambda e, r: 2)
        reg.on("hello", first)
        reg.on("hello", second)
        reg.off("hello", 0)
        assert reg.handlers("hello") == (second,)

    def test_off_last_index_keeps_empty_entry(self):
        reg = EventRegistry()
        reg.on("hello", _noop)
        reg.off("hello", 0)
        assert reg.is_registered("hello") is True
        assert reg.snapshot() == {"hello": ()}

    def test_off_unregistered_type_is_noop(self):
        reg = EventRegistry()
        reg.off("never")
        assert reg.is_registered("never") is False

    def test_off_index_on_unregistered_type(self):
        with pytest.raises(InvalidArgumentError):
            EventRegistry().off("never", 0)

    @pytest.mark.parametrize("index", [1, -1, True, "0"])
    def test_off_rejects_bad_index(self, index):
        reg = EventRegistry()
        reg.on("hello", _noop)
        with pytest.raises(InvalidArgumentError):
            reg.off("hello", index)
        assert len(reg.handlers("hello")) == 1

    def test_off_rejects_missing_type(self):
        with pytest.raises(InvalidArgumentError):
            EventRegistry().off("")


class TestEventRegistrySnapshot:
    def test_handlers_snapshot_survives_mutation(self):
        reg = EventRegistry()
        reg.on("hello", _noop)
        snapshot = reg.handlers("hello")
        reg.on("hello", _noop)
        reg.off("hello")
        assert snapshot == (_noop,)

    def test_snapshot_is_a_copy(self):
        reg = EventRegistry()
        reg.on("hello", _noop)
        snap = reg.snapshot()
        snap["other"] = ()
        assert reg.is_registered("other") is False
