"""Replay command implementation."""

import argparse
import logging
from pathlib import Path
from typing import Any, override

from portfolio_tracker.commands.base import Command, CommandRegistry, add_portfolio_option
from portfolio_tracker.display import display_dashboard, format_connection
from portfolio_tracker.importer import load_price_events
from portfolio_tracker.models import Asset
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.price_transport import LocalPriceTransport
from portfolio_tracker.services.realtime_service import RealtimePriceChannel

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_KEY = "default"


@CommandRegistry.register
class ReplayCommand(Command):
    """Command to replay recorded price events through the realtime channel."""

    name: str = "replay"
    help: str = "Replay price events from a JSON-lines file and show the updated dashboard"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the replay command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("events_file", help="JSON-lines file of price events")
        add_portfolio_option(parser)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the replay command."""
        events_path: Path = Path(args.events_file)
        if not events_path.exists():
            logger.error(f"Events file not found: {events_path}")
            print(f"Error: Events file not found: {events_path}")
            return 1

        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        try:
            portfolio_id: str | None = portfolio_service.resolve_channel_portfolio(args.portfolio)
        except ValueError as e:
            logger.error(f"Cannot replay price events: {e}")
            print(f"Error: {e}")
            return 1

        channel_key: str = portfolio_id or DEFAULT_CHANNEL_KEY
        transport: LocalPriceTransport = LocalPriceTransport()
        channel: RealtimePriceChannel = self.container.create_price_channel(transport)

        try:
            assets: list[Asset] = portfolio_service.get_assets(portfolio_id)
            payloads: list[Any] = load_price_events(events_path)

            channel.start(channel_key, assets)
            for payload in payloads:
                transport.publish(channel_key, payload)

            print(f"Replayed {len(payloads)} price events.")
            print(format_connection(channel.state))
            display_dashboard(portfolio_service.build_dashboard(channel.assets))
            return 0
        except Exception as e:
            logger.error(f"Replay failed: {e}", exc_info=True)
            print(f"Error: Replay failed: {e}")
            return 1
        finally:
            channel.stop()
