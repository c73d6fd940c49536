from unittest.mock import MagicMock

from portfolio_tracker.services.price_transport import (
    CHANNEL_ERROR,
    SUBSCRIBED,
    LocalPriceTransport,
)


class TestLocalPriceTransport:
    def test_subscribe_reports_subscribed(self):
        transport = LocalPriceTransport()
        on_status = MagicMock()

        handle = transport.subscribe("main", MagicMock(), on_status)

        on_status.assert_called_once_with(SUBSCRIBED)
        assert transport.active_handles == [handle]

    def test_without_auto_connect_stays_silent(self):
        transport = LocalPriceTransport(auto_connect=False)
        on_status = MagicMock()

        transport.subscribe("main", MagicMock(), on_status)

        on_status.assert_not_called()

    def test_publish_reaches_only_matching_portfolio(self):
        transport = LocalPriceTransport()
        main_events = MagicMock()
        side_events = MagicMock()
        transport.subscribe("main", main_events, MagicMock())
        transport.subscribe("side", side_events, MagicMock())

        delivered = transport.publish("main", {"asset_id": "s-1", "price": 1})

        assert delivered == 1
        main_events.assert_called_once_with({"asset_id": "s-1", "price": 1})
        side_events.assert_not_called()

    def test_unsubscribe_stops_delivery(self):
        transport = LocalPriceTransport()
        on_event = MagicMock()
        handle = transport.subscribe("main", on_event, MagicMock())

        transport.unsubscribe(handle)
        transport.unsubscribe(handle)

        assert transport.publish("main", {"asset_id": "s-1", "price": 1}) == 0
        on_event.assert_not_called()
        assert transport.active_handles == []

    def test_emit_status_passes_error(self):
        transport = LocalPriceTransport(auto_connect=False)
        on_status = MagicMock()
        transport.subscribe("main", MagicMock(), on_status)

        transport.emit_status("main", CHANNEL_ERROR, "socket closed")

        on_status.assert_called_once_with(CHANNEL_ERROR, "socket closed")
