import logging
from datetime import datetime, timezone
from typing import Any, Callable

from pyrate_limiter import Limiter

from portfolio_tracker.models import AllocationItem, Asset, AssetQuery, DashboardSnapshot
from portfolio_tracker.repositories.asset_repository import AssetRepository
from portfolio_tracker.services.metrics_service import (
    compute_allocation,
    compute_risk,
    compute_summary,
)
from portfolio_tracker.services.query_service import query_assets
from portfolio_tracker.services.realtime_service import RealtimePriceChannel
from portfolio_tracker.yfinance_api import fetch_latest_prices

logger = logging.getLogger(__name__)


class PortfolioService:
    """Service for portfolio-level views built on the asset source."""

    def __init__(self, asset_repo: AssetRepository):
        self.asset_repo = asset_repo

    @staticmethod
    def build_dashboard(assets: list[Asset]) -> DashboardSnapshot:
        """Summary, allocation and risk for a set of assets."""
        allocation: list[AllocationItem] = compute_allocation(assets)
        return DashboardSnapshot(
            summary=compute_summary(assets),
            allocation=allocation,
            risk_score=compute_risk(allocation),
        )

    def get_assets(self, portfolio_id: str | None = None) -> list[Asset]:
        return self.asset_repo.get_all(portfolio_id)

    def get_dashboard(self, portfolio_id: str | None = None) -> DashboardSnapshot:
        """Build the dashboard from a fresh snapshot of the asset source."""
        assets: list[Asset] = self.get_assets(portfolio_id)
        logger.debug(f"Building dashboard for {len(assets)} assets (portfolio={portfolio_id})")
        return self.build_dashboard(assets)

    def resolve_channel_portfolio(self, portfolio_id: str | None) -> str | None:
        """
        Pick the portfolio a realtime price channel should track.

        Price events identify assets by id only, and ids are unique only within a
        portfolio, so a channel must not mix portfolios.

        Args:
            portfolio_id: Portfolio requested by the caller, if any

        Returns:
            The portfolio id, or None when the source holds at most one portfolio

        Raises:
            ValueError: If the requested portfolio is unknown, or none was requested
                and the source holds several
        """
        portfolio_ids: list[str] = self.asset_repo.get_portfolio_ids()
        if portfolio_id is not None:
            if portfolio_id not in portfolio_ids:
                raise ValueError(
                    f"Unknown portfolio '{portfolio_id}'. Available: {', '.join(portfolio_ids) or 'none'}"
                )
            return portfolio_id

        if len(portfolio_ids) > 1:
            raise ValueError(
                f"Assets span several portfolios ({', '.join(portfolio_ids)}); "
                "choose one with --portfolio"
            )
        return None

    def list_assets(self, query: AssetQuery, portfolio_id: str | None = None) -> list[Asset]:
        return query_assets(self.get_assets(portfolio_id), query)

    @staticmethod
    def build_price_events(
        assets: list[Asset], prices: dict[str, float], timestamp: datetime | None = None
    ) -> list[dict[str, Any]]:
        """
        Turn fetched quotes into price event payloads, one per asset holding a quoted symbol.

        Args:
            assets: Assets to re-price
            prices: Latest price per symbol
            timestamp: Quote time stamped on every event (defaults to now, UTC)

        Returns:
            Payloads in the shape the realtime channel accepts
        """
        stamp: str = (timestamp or datetime.now(timezone.utc)).isoformat()
        events: list[dict[str, Any]] = []
        for asset in assets:
            if asset.symbol and asset.symbol in prices:
                events.append(
                    {"asset_id": asset.id, "price": prices[asset.symbol], "timestamp": stamp}
                )
        return events

    def reprice(
        self,
        channel: RealtimePriceChannel,
        publish: Callable[[dict[str, Any]], Any],
        limiter: Limiter,
    ) -> int:
        """
        Fetch latest quotes for the channel's assets and push them through the channel.

        Args:
            channel: Started channel tracking the portfolio to re-price
            publish: Callable delivering one payload to the channel's transport
            limiter: Rate limiter for quote requests

        Returns:
            Number of price events published
        """
        assets: list[Asset] = channel.assets
        symbols: list[str] = [asset.symbol for asset in assets if asset.symbol]
        if not symbols:
            logger.info("No assets with a symbol to re-price")
            return 0

        prices: dict[str, float] = fetch_latest_prices(symbols, limiter)
        events: list[dict[str, Any]] = self.build_price_events(assets, prices)
        for payload in events:
            publish(payload)

        logger.info(f"Published {len(events)} price updates for {len(assets)} assets")
        return len(events)
