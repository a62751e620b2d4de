import json
from unittest.mock import MagicMock

import pytest

from storefront.services.sync_channel import (
    CART_UPDATED,
    ChannelHub,
    RedisBroadcastChannel,
    cart_updated_message,
    open_cart_channel,
)


def test_message_reaches_peers_but_not_sender():
    hub = ChannelHub()
    tab_a, tab_b, tab_c = hub.open(), hub.open(), hub.open()
    received = {"a": [], "b": [], "c": []}
    tab_a.on_message = received["a"].append
    tab_b.on_message = received["b"].append
    tab_c.on_message = received["c"].append

    tab_a.post_message(cart_updated_message())

    assert received["a"] == []
    assert received["b"] == [{"type": CART_UPDATED}]
    assert received["c"] == [{"type": CART_UPDATED}]


def test_channels_with_other_names_are_isolated():
    hub = ChannelHub()
    cart_tab = hub.open("cart-sync")
    other = hub.open("wishlist-sync")
    other.on_message = MagicMock()

    hub.open("cart-sync").post_message(cart_updated_message())

    other.on_message.assert_not_called()
    assert cart_tab.on_message is None


def test_closed_channel_neither_sends_nor_receives():
    hub = ChannelHub()
    tab_a, tab_b = hub.open(), hub.open()
    received_by_a = MagicMock()
    received_by_b = MagicMock()
    tab_a.on_message = received_by_a
    tab_b.on_message = received_by_b

    tab_b.close()
    tab_a.post_message(cart_updated_message())
    tab_b.post_message(cart_updated_message())

    received_by_a.assert_not_called()
    received_by_b.assert_not_called()
    assert hub.peers(tab_a) == []


def test_open_cart_channel_uses_given_hub():
    hub = ChannelHub()
    channel = open_cart_channel("local", hub=hub)

    assert hub.peers(hub.open()) == [channel]


def _redis_channel():
    client = MagicMock()
    return RedisBroadcastChannel("cart-sync", client=client), client


def test_redis_channel_publishes_envelope():
    channel, client = _redis_channel()

    channel.post_message(cart_updated_message())

    name, payload = client.publish.call_args.args
    assert name == "cart-sync"
    assert json.loads(payload) == {"sender": channel.sender_id, "message": {"type": CART_UPDATED}}


def test_redis_channel_drops_own_echo():
    channel, _ = _redis_channel()
    channel.on_message = MagicMock()

    channel._handle_raw({"data": json.dumps({"sender": channel.sender_id, "message": {"type": CART_UPDATED}})})

    channel.on_message.assert_not_called()


def test_redis_channel_delivers_other_senders():
    channel, _ = _redis_channel()
    channel.on_message = MagicMock()

    channel._handle_raw({"data": json.dumps({"sender": "another-tab", "message": {"type": CART_UPDATED}})})

    channel.on_message.assert_called_once_with({"type": CART_UPDATED})


@pytest.mark.parametrize(
    "data",
    [
        "not json",
        "1",
        "[]",
        json.dumps({"sender": "another-tab", "message": "cart-updated"}),
    ],
)
def test_redis_channel_ignores_garbage(data):
    channel, _ = _redis_channel()
    channel.on_message = MagicMock()

    channel._handle_raw({"data": data})

    channel.on_message.assert_not_called()


def test_redis_listener_errors_do_not_stop_the_thread():
    channel, client = _redis_channel()

    handler = client.pubsub.return_value.run_in_thread.call_args.kwargs["exception_handler"]
    handler(RuntimeError("handler blew up"), client.pubsub.return_value, None)

    assert handler == channel._on_listener_error


def test_redis_channel_close_stops_listener():
    channel, client = _redis_channel()
    pubsub = client.pubsub.return_value

    channel.close()

    pubsub.run_in_thread.return_value.stop.assert_called_once()
    pubsub.close.assert_called_once()
