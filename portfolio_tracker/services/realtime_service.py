"""
Realtime price channel.

Keeps one subscription per tracked portfolio, applies pushed prices to an
in-memory copy of the portfolio's assets, and reports connection health.
Every subscription is tagged with a generation number; callbacks from an
older generation are ignored, so a torn-down channel can never touch state.
"""

import asyncio
import logging
import math
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from portfolio_tracker.models import Asset, ConnectionState, ConnectionStatus, PriceEvent
from portfolio_tracker.services.price_transport import (
    CHANNEL_ERROR,
    CLOSED,
    SUBSCRIBED,
    TIMED_OUT,
    PriceTransport,
)

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

SUBSCRIBE_FAILED_MESSAGE = "Failed to subscribe to price updates"
CHANNEL_ERROR_MESSAGE = "Failed to connect to price updates"
TIMED_OUT_MESSAGE = "Connection timed out"
CLOSED_MESSAGE = "Connection closed"
PROCESSING_FAILED_MESSAGE = "Failed to process price update"


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable | None]
Listener = Callable[["RealtimePriceChannel"], None]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> Cancellable | None:
    """Schedule a callback on the running asyncio loop. Without a running loop nothing is scheduled."""
    try:
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop, connect timeout not scheduled")
        return None
    return loop.call_later(delay, callback)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        logger.warning(f"Price timestamp {value!r} is not an ISO string, using receipt time")
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Unparseable price timestamp {value!r}, using receipt time")
        return None


def parse_price_event(payload: Any) -> PriceEvent:
    """
    Build a PriceEvent from a raw channel payload.

    Accepts `{"asset_id", "price", "timestamp"}` (or `assetId`), optionally wrapped
    in a broadcast envelope under "payload".

    Raises:
        ValueError: If the payload has no asset id or a price that is not a finite number
    """
    if isinstance(payload, Mapping) and isinstance(payload.get("payload"), Mapping):
        payload = payload["payload"]
    if not isinstance(payload, Mapping):
        raise ValueError(f"Price payload must be a mapping, got {type(payload).__name__}")

    asset_id: Any = payload.get("asset_id") or payload.get("assetId")
    if not asset_id:
        raise ValueError("Price payload is missing asset_id")

    raw_price: Any = payload.get("price")
    if isinstance(raw_price, bool) or not isinstance(raw_price, (int, float)):
        raise ValueError(f"Price for asset {asset_id} is not numeric: {raw_price!r}")
    try:
        price: float = float(raw_price)
    except OverflowError as e:
        raise ValueError(f"Price for asset {asset_id} is out of range") from e
    if not math.isfinite(price):
        raise ValueError(f"Price for asset {asset_id} is not finite: {raw_price!r}")

    return PriceEvent(
        asset_id=str(asset_id),
        price=price,
        timestamp=_parse_timestamp(payload.get("timestamp")),
    )


class RealtimePriceChannel:
    """Subscription state machine for one portfolio's realtime prices."""

    def __init__(
        self,
        transport: PriceTransport,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            transport: Push channel to subscribe through
            connect_timeout_seconds: How long a connection attempt may stay in 'connecting'
            scheduler: Schedules the connect timeout; defaults to the running asyncio loop
            clock: Receipt time for events that carry no timestamp
        """
        self._transport = transport
        self._connect_timeout_seconds = connect_timeout_seconds
        self._schedule: Scheduler = scheduler or loop_scheduler
        self._clock: Callable[[], datetime] = clock or _utc_now

        self._generation = 0
        self._handle: Any = None
        self._timeout_timer: Cancellable | None = None
        self._portfolio_id: str | None = None
        self._assets: dict[str, Asset] = {}
        self._listeners: list[Listener] = []

        self._status: ConnectionStatus = "disconnected"
        self._last_updated: datetime | None = None
        self._last_error: str | None = None

    # --- Read side ---

    @property
    def state(self) -> ConnectionState:
        return ConnectionState(
            status=self._status, last_updated=self._last_updated, last_error=self._last_error
        )

    @property
    def portfolio_id(self) -> str | None:
        return self._portfolio_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def assets(self) -> list[Asset]:
        """Current copy of the tracked assets, in the order they were supplied."""
        return [replace(asset) for asset in self._assets.values()]

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run after every state or price change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Lifecycle ---

    def start(self, portfolio_id: str, assets: list[Asset]) -> None:
        """
        Track a portfolio and open its price channel.

        Any existing subscription is torn down first, so events for the previous
        portfolio can no longer reach the new asset copy.
        """
        if self._handle is not None or self._status != "disconnected":
            logger.info(
                f"Switching realtime prices from portfolio {self._portfolio_id} to {portfolio_id}"
            )
            self._teardown()

        self._portfolio_id = portfolio_id
        self._assets = self._copy_assets(assets)
        self._last_updated = None
        self._last_error = None
        self._subscribe()

    def stop(self) -> None:
        """Close the channel and stop tracking. Safe to call when already stopped."""
        if self._portfolio_id is None and self._status == "disconnected":
            return
        logger.info(f"Stopping realtime prices for portfolio {self._portfolio_id}")
        self._teardown()
        self._portfolio_id = None
        self._last_error = None
        self._set_status("disconnected")

    def reconnect(self) -> None:
        """Drop the current subscription and open a fresh one for the tracked portfolio."""
        if self._portfolio_id is None:
            logger.warning("Reconnect requested with no portfolio being tracked")
            return
        logger.info(f"Reconnecting realtime prices for portfolio {self._portfolio_id}")
        self._teardown()
        self._subscribe()

    def replace_assets(self, assets: list[Asset]) -> None:
        """Swap in a freshly pulled snapshot of the tracked portfolio's assets."""
        self._assets = self._copy_assets(assets)
        self._notify()

    # --- Internals ---

    def _copy_assets(self, assets: list[Asset]) -> dict[str, Asset]:
        # Price events carry only an asset id, so ids must be unique per channel
        copies: dict[str, Asset] = {}
        for asset in assets:
            if asset.id in copies:
                logger.warning(
                    f"Asset id {asset.id} appears more than once (portfolios "
                    f"{copies[asset.id].portfolio_id} and {asset.portfolio_id}), keeping the first"
                )
                continue
            copies[asset.id] = replace(asset)
        return copies

    def _subscribe(self) -> None:
        self._generation += 1
        generation: int = self._generation
        portfolio_id: str = str(self._portfolio_id)
        self._set_status("connecting")
        self._arm_timeout(generation)

        try:
            handle: Any = self._transport.subscribe(
                portfolio_id,
                lambda payload: self._on_event(generation, payload),
                lambda status, error=None: self._on_status_change(generation, status, error),
            )
        except Exception as e:
            logger.error(f"Subscribing to prices for portfolio {portfolio_id} failed: {e}")
            self._fail(str(e) or SUBSCRIBE_FAILED_MESSAGE)
            return

        if generation == self._generation:
            self._handle = handle
        else:
            # A callback fired during subscribe already superseded this subscription
            self._release(handle)

    def _teardown(self) -> None:
        self._generation += 1
        self._cancel_timeout()
        if self._handle is not None:
            handle: Any = self._handle
            self._handle = None
            self._release(handle)

    def _release(self, handle: Any) -> None:
        try:
            self._transport.unsubscribe(handle)
        except Exception as e:
            logger.warning(f"Unsubscribing price channel {handle!r} failed: {e}", exc_info=True)

    def _arm_timeout(self, generation: int) -> None:
        self._cancel_timeout()
        self._timeout_timer = self._schedule(
            self._connect_timeout_seconds, lambda: self._on_connect_timeout(generation)
        )

    def _cancel_timeout(self) -> None:
        if self._timeout_timer is not None:
            self._timeout_timer.cancel()
            self._timeout_timer = None

    def _on_connect_timeout(self, generation: int) -> None:
        if generation != self._generation or self._status != "connecting":
            return
        self._timeout_timer = None
        logger.warning(
            f"Price channel for portfolio {self._portfolio_id} did not connect within "
            f"{self._connect_timeout_seconds}s"
        )
        self._fail(TIMED_OUT_MESSAGE)

    def _on_status_change(self, generation: int, status: str, error: str | None = None) -> None:
        if generation != self._generation:
            logger.debug(f"Ignoring status {status} from stale subscription {generation}")
            return

        if status == SUBSCRIBED:
            self._cancel_timeout()
            self._last_error = None
            logger.info(f"Realtime prices connected for portfolio {self._portfolio_id}")
            self._set_status("connected")
        elif status == CHANNEL_ERROR:
            self._fail(error or CHANNEL_ERROR_MESSAGE)
        elif status == TIMED_OUT:
            self._fail(TIMED_OUT_MESSAGE)
        elif status == CLOSED:
            self._fail(error or CLOSED_MESSAGE)
        else:
            logger.debug(f"Ignoring unrecognised channel status {status!r}")

    def _on_event(self, generation: int, payload: Any) -> None:
        if generation != self._generation:
            logger.debug(f"Dropping price event from stale subscription {generation}")
            return

        try:
            event: PriceEvent = parse_price_event(payload)
        except ValueError as e:
            logger.warning(f"Dropping malformed price event: {e}")
            return

        try:
            self._apply(event)
        except Exception as e:
            logger.error(f"Applying price event for asset {event.asset_id} failed: {e}", exc_info=True)
            self._fail(PROCESSING_FAILED_MESSAGE)

    def _apply(self, event: PriceEvent) -> None:
        asset: Asset | None = self._assets.get(event.asset_id)
        if asset is None:
            logger.debug(
                f"Dropping price for asset {event.asset_id} not in portfolio {self._portfolio_id}"
            )
            return

        self._assets[event.asset_id] = replace(asset, current_price=event.price)
        self._last_updated = event.timestamp or self._clock()
        logger.debug(f"Applied price {event.price} to asset {event.asset_id}")
        self._notify()

    def _fail(self, message: str) -> None:
        self._cancel_timeout()
        self._last_error = message
        logger.warning(f"Realtime prices for portfolio {self._portfolio_id} in error: {message}")
        self._set_status("error")

    def _set_status(self, status: ConnectionStatus) -> None:
        self._status = status
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Realtime price listener failed: {e}", exc_info=True)
