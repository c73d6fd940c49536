from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from portfolio_tracker.models import AssetQuery
from portfolio_tracker.repositories.asset_repository import AssetRepository
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.price_transport import LocalPriceTransport
from portfolio_tracker.services.realtime_service import RealtimePriceChannel


class TestPortfolioService:
    """Tests for the PortfolioService class."""

    @pytest.fixture
    def mock_repo(self, scenario_assets):
        """Create a mock asset repository."""
        repo = MagicMock(spec=AssetRepository)
        repo.get_all.return_value = scenario_assets
        return repo

    @pytest.fixture
    def portfolio_service(self, mock_repo):
        """Create a PortfolioService with a mock repository."""
        return PortfolioService(mock_repo)

    def test_get_dashboard(self, portfolio_service, mock_repo):
        snapshot = portfolio_service.get_dashboard("main")

        mock_repo.get_all.assert_called_once_with("main")
        assert snapshot.summary.total_value == pytest.approx(3300.0)
        assert [item.type for item in snapshot.allocation] == ["stock", "crypto", "fixed_income"]
        assert snapshot.risk_score == 7

    def test_get_dashboard_empty(self, portfolio_service, mock_repo):
        mock_repo.get_all.return_value = []

        snapshot = portfolio_service.get_dashboard()

        assert snapshot.allocation == []
        assert snapshot.risk_score == 5
        assert snapshot.summary.best_performer is None

    def test_resolve_channel_portfolio_known(self, portfolio_service, mock_repo):
        mock_repo.get_portfolio_ids.return_value = ["main", "side"]

        assert portfolio_service.resolve_channel_portfolio("side") == "side"

    def test_resolve_channel_portfolio_unknown(self, portfolio_service, mock_repo):
        mock_repo.get_portfolio_ids.return_value = ["main"]

        with pytest.raises(ValueError, match="Unknown portfolio 'side'"):
            portfolio_service.resolve_channel_portfolio("side")

    def test_resolve_channel_portfolio_requires_choice(self, portfolio_service, mock_repo):
        mock_repo.get_portfolio_ids.return_value = ["main", "side"]

        with pytest.raises(ValueError, match="choose one with --portfolio"):
            portfolio_service.resolve_channel_portfolio(None)

    @pytest.mark.parametrize("portfolio_ids", [[], ["main"]])
    def test_resolve_channel_portfolio_single_source(
        self, portfolio_service, mock_repo, portfolio_ids
    ):
        mock_repo.get_portfolio_ids.return_value = portfolio_ids

        assert portfolio_service.resolve_channel_portfolio(None) is None

    def test_list_assets(self, portfolio_service):
        assets = portfolio_service.list_assets(AssetQuery(sort_by="performance"))

        assert [asset.id for asset in assets] == ["s-1", "f-1", "c-1"]

    def test_build_price_events(self, scenario_assets):
        stamp = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

        events = PortfolioService.build_price_events(
            scenario_assets, {"ACME": 110.0, "ETH-USD": 3000.0}, stamp
        )

        assert events == [
            {"asset_id": "s-1", "price": 110.0, "timestamp": "2024-05-01T09:30:00+00:00"}
        ]

    def test_reprice_publishes_fetched_prices(self, portfolio_service, scenario_assets, mocker):
        # Setup
        mock_fetch = mocker.patch(
            "portfolio_tracker.services.portfolio_service.fetch_latest_prices",
            return_value={"ACME": 125.0, "BTC-USD": 1200.0},
        )
        transport = LocalPriceTransport()
        channel = RealtimePriceChannel(transport, scheduler=lambda delay, callback: None)
        channel.start("main", scenario_assets)
        limiter = MagicMock()

        # Test
        updated = portfolio_service.reprice(
            channel, lambda payload: transport.publish("main", payload), limiter
        )

        # Assertions
        mock_fetch.assert_called_once_with(["ACME", "BTC-USD"], limiter)
        assert updated == 2
        prices = {asset.id: asset.current_price for asset in channel.assets}
        assert prices == {"s-1": 125.0, "c-1": 1200.0, "f-1": 10}
        assert channel.state.last_updated is not None

    def test_reprice_without_symbols_does_not_fetch(self, portfolio_service, make_asset, mocker):
        mock_fetch = mocker.patch("portfolio_tracker.services.portfolio_service.fetch_latest_prices")
        channel = RealtimePriceChannel(LocalPriceTransport(), scheduler=lambda delay, callback: None)
        channel.start("main", [make_asset(symbol=None)])
        publish = MagicMock()

        assert portfolio_service.reprice(channel, publish, MagicMock()) == 0
        mock_fetch.assert_not_called()
        publish.assert_not_called()
