# storefront/services/sync_channel.py
"""
Cart invalidation channel.

Carries a single message shape, {"type": "cart-updated"}. Receivers refetch
the cart themselves because no cart data travels over the channel. A message
reaches every other open channel with the same name, never the sender.
"""
import json
import uuid
from typing import Callable, Dict, List, Optional, Protocol

import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import CART_CHANNEL_NAME, CART_SYNC_BACKEND, REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CART_UPDATED = "cart-updated"

MessageHandler = Callable[[dict], object]


def cart_updated_message() -> dict:
    return {"type": CART_UPDATED}


class BroadcastChannel(Protocol):
    name: str
    on_message: Optional[MessageHandler]

    def post_message(self, message: dict) -> None:
        ...

    def close(self) -> None:
        ...


# =====================================================
# IN-PROCESS
# =====================================================
class ChannelHub:
    """Registry of open local channels, i.e. one browser's worth of tabs."""

    def __init__(self):
        self._channels: Dict[str, List["LocalBroadcastChannel"]] = {}

    def open(self, name: str = CART_CHANNEL_NAME) -> "LocalBroadcastChannel":
        channel = LocalBroadcastChannel(name, self)
        self._channels.setdefault(name, []).append(channel)
        return channel

    def peers(self, channel: "LocalBroadcastChannel") -> List["LocalBroadcastChannel"]:
        return [c for c in self._channels.get(channel.name, []) if c is not channel]

    def detach(self, channel: "LocalBroadcastChannel") -> None:
        members = self._channels.get(channel.name, [])
        if channel in members:
            members.remove(channel)


class LocalBroadcastChannel:
    def __init__(self, name: str, hub: ChannelHub):
        self.name = name
        self.hub = hub
        self.on_message: Optional[MessageHandler] = None
        self.closed = False

    def post_message(self, message: dict) -> None:
        if self.closed:
            return
        for peer in self.hub.peers(self):
            if peer.on_message is not None:
                peer.on_message(dict(message))

    def close(self) -> None:
        self.closed = True
        self.on_message = None
        self.hub.detach(self)


default_hub = ChannelHub()


# =====================================================
# REDIS PUB/SUB
# =====================================================
class RedisBroadcastChannel:
    """
    Same contract across processes. The published envelope is
    {"sender": <channel id>, "message": {...}} so a channel can drop its own echo.
    """

    def __init__(self, name: str = CART_CHANNEL_NAME, url: str | None = None, client: redis.Redis | None = None):
        self.name = name
        self.sender_id = uuid.uuid4().hex
        self.on_message: Optional[MessageHandler] = None
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)

        self._pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        self._subscribe()
        self._thread = self._pubsub.run_in_thread(
            sleep_time=0.1, daemon=True, exception_handler=self._on_listener_error
        )

    @redis_retry()
    def _subscribe(self):
        self._pubsub.subscribe(**{self.name: self._handle_raw})

    @redis_retry()
    def post_message(self, message: dict) -> None:
        payload = json.dumps({"sender": self.sender_id, "message": message})
        self.redis.publish(self.name, payload)

    def _handle_raw(self, raw: dict) -> None:
        try:
            envelope = json.loads(raw["data"])
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed message on {self.name}: {e}")
            return

        if not isinstance(envelope, dict) or not isinstance(envelope.get("message"), dict):
            logger.warning(f"Ignoring message without an envelope on {self.name}")
            return

        if envelope.get("sender") == self.sender_id:
            return
        if self.on_message is not None:
            self.on_message(envelope["message"])

    def _on_listener_error(self, error: BaseException, pubsub, thread) -> None:
        # keeps the listener thread alive, the next message is handled normally
        logger.error(f"Cart sync listener on {self.name} failed: {error}")

    def close(self) -> None:
        self.on_message = None
        self._thread.stop()
        self._pubsub.close()


def open_cart_channel(backend: str = CART_SYNC_BACKEND, hub: ChannelHub | None = None) -> BroadcastChannel:
    if backend == "redis":
        return RedisBroadcastChannel()
    return (hub or default_hub).open(CART_CHANNEL_NAME)
