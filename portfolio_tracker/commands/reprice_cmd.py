"""Reprice command implementation."""

import argparse
import logging
from typing import override

from portfolio_tracker.commands.base import Command, CommandRegistry, add_portfolio_option
from portfolio_tracker.display import display_dashboard, format_connection
from portfolio_tracker.models import Asset
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.price_transport import LocalPriceTransport
from portfolio_tracker.services.realtime_service import RealtimePriceChannel

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_KEY = "default"


@CommandRegistry.register
class RepriceCommand(Command):
    """Command to fetch latest prices from Yahoo Finance and apply them to the portfolio."""

    name: str = "reprice"
    help: str = "Fetch latest prices and show the re-priced dashboard"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the reprice command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        add_portfolio_option(parser)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the reprice command."""
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        try:
            portfolio_id: str | None = portfolio_service.resolve_channel_portfolio(args.portfolio)
        except ValueError as e:
            logger.error(f"Cannot reprice: {e}")
            print(f"Error: {e}")
            return 1

        channel_key: str = portfolio_id or DEFAULT_CHANNEL_KEY
        transport: LocalPriceTransport = LocalPriceTransport()
        channel: RealtimePriceChannel = self.container.create_price_channel(transport)

        try:
            assets: list[Asset] = portfolio_service.get_assets(portfolio_id)
            channel.start(channel_key, assets)

            print("Fetching latest prices...")
            updated: int = portfolio_service.reprice(
                channel,
                lambda payload: transport.publish(channel_key, payload),
                self.container.get_rate_limiter(),
            )

            print(f"Updated {updated} of {len(assets)} assets.")
            print(format_connection(channel.state))
            display_dashboard(portfolio_service.build_dashboard(channel.assets))
            return 0
        except Exception as e:
            logger.error(f"Reprice failed: {e}", exc_info=True)
            print(f"Error: Reprice failed: {e}")
            return 1
        finally:
            channel.stop()
