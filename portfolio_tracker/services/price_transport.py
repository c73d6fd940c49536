"""Push transport contract for realtime price updates, and an in-memory implementation."""

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

logger: logging.Logger = logging.getLogger(__name__)

# Status values a transport reports through on_status_change
SUBSCRIBED = "SUBSCRIBED"
CHANNEL_ERROR = "CHANNEL_ERROR"
TIMED_OUT = "TIMED_OUT"
CLOSED = "CLOSED"

EventCallback = Callable[[Any], None]
StatusCallback = Callable[..., None]


class PriceTransport(Protocol):
    def subscribe(
        self, portfolio_id: str, on_event: EventCallback, on_status_change: StatusCallback
    ) -> Any:
        """
        Open a channel for a portfolio's price updates.

        on_event receives each raw payload. on_status_change receives a status
        string and, optionally, an error message.

        Returns:
            An opaque handle to pass back to unsubscribe
        """
        ...

    def unsubscribe(self, handle: Any) -> None: ...


@dataclass
class _Subscription:
    portfolio_id: str
    on_event: EventCallback
    on_status_change: StatusCallback


class LocalPriceTransport:
    """
    Transport that delivers published payloads to subscribers in the same process.

    Used to replay recorded events and to feed fetched quotes through the same
    path as pushed updates.
    """

    def __init__(self, auto_connect: bool = True):
        """
        Args:
            auto_connect: Report SUBSCRIBED as soon as a subscription is opened
        """
        self.auto_connect = auto_connect
        self._ids = itertools.count(1)
        self._subscriptions: dict[int, _Subscription] = {}

    def subscribe(
        self, portfolio_id: str, on_event: EventCallback, on_status_change: StatusCallback
    ) -> int:
        handle: int = next(self._ids)
        self._subscriptions[handle] = _Subscription(portfolio_id, on_event, on_status_change)
        logger.debug(f"Opened local subscription {handle} for portfolio {portfolio_id}")
        if self.auto_connect:
            on_status_change(SUBSCRIBED)
        return handle

    def unsubscribe(self, handle: int) -> None:
        if self._subscriptions.pop(handle, None) is None:
            logger.debug(f"Unsubscribe for unknown handle {handle}")
            return
        logger.debug(f"Closed local subscription {handle}")

    @property
    def active_handles(self) -> list[int]:
        return list(self._subscriptions)

    def publish(self, portfolio_id: str, payload: Any) -> int:
        """
        Deliver a payload to every subscriber of a portfolio.

        Returns:
            Number of subscribers the payload was delivered to
        """
        targets: list[_Subscription] = [
            sub for sub in self._subscriptions.values() if sub.portfolio_id == portfolio_id
        ]
        for sub in targets:
            sub.on_event(payload)
        return len(targets)

    def emit_status(self, portfolio_id: str, status: str, error: str | None = None) -> None:
        """Report a status change to every subscriber of a portfolio."""
        targets: list[_Subscription] = [
            sub for sub in self._subscriptions.values() if sub.portfolio_id == portfolio_id
        ]
        for sub in targets:
            sub.on_status_change(status, error)
