"""Tests for interest filtering."""

from udpnode.identity import Identity
from udpnode.interest import is_of_interest
from udpnode.protocol import Envelope, MsgType


def _me(role: str | None = None) -> Identity:
    return Identity(id="me", port=3024, broadcast_address="255.255.255.255", role=role)


class TestIsOfInterest:
    def test_own_message_is_ignored(self):
        env = Envelope(type=MsgType.BROADCAST, from_="me")
        assert is_of_interest(env, _me()) is False

    def test_own_message_ignored_even_when_role_matches(self):
        env = Envelope(type=MsgType.BROADCAST, from_="me", filter=["sensor"])
        assert is_of_interest(env, _me("sensor")) is False

    def test_no_filter_addresses_everyone(self):
        env = Envelope(type=MsgType.BROADCAST, from_="other")
        assert is_of_interest(env, _me("sensor")) is True

    def test_empty_filter_addresses_everyone(self):
        env = Envelope(type=MsgType.BROADCAST, from_="other", filter=[])
        assert is_of_interest(env, _me("sensor")) is True

    def test_node_without_role_is_always_addressed(self):
        env = Envelope(type=MsgType.BROADCAST, from_="other", filter=["hub"])
        assert is_of_interest(env, _me()) is True

    def test_role_in_filter(self):
        env = Envelope(type=MsgType.BROADCAST, from_="other", filter=["hub", "sensor"])
        assert is_of_interest(env, _me("sensor")) is True

    def test_role_not_in_filter(self):
        env = Envelope(type=MsgType.BROADCAST, from_="other", filter=["hub"])
        assert is_of_interest(env, _me("sensor")) is False

    def test_ping_uses_same_rules(self):
        env = Envelope(type=MsgType.PING, from_="other", filter=["hub"])
        assert is_of_interest(env, _me("sensor")) is False
        assert is_of_interest(env, _me("hub")) is True
