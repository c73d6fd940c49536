"""Assets command implementation."""

import argparse
import logging
from typing import override

from portfolio_tracker.commands.base import Command, CommandRegistry, add_portfolio_option
from portfolio_tracker.display import display_assets
from portfolio_tracker.models import ASSET_TYPES, SORT_KEYS, Asset, AssetQuery
from portfolio_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class AssetsCommand(Command):
    """Command to search, filter and sort the asset list."""

    name: str = "assets"
    help: str = "List assets with search, type filter and sorting"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the assets command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        add_portfolio_option(parser)
        _ = parser.add_argument("--search", default="", help="Match against name or symbol")
        _ = parser.add_argument(
            "--type",
            dest="asset_type",
            choices=["all", *ASSET_TYPES],
            default="all",
            help="Only list assets of this type",
        )
        _ = parser.add_argument(
            "--sort-by",
            choices=SORT_KEYS,
            default=None,
            help="Sort key (defaults to config.default_sort_by)",
        )
        _ = parser.add_argument(
            "--ascending", action="store_true", help="Reverse the default sort direction"
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the assets command."""
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)
        query: AssetQuery = AssetQuery(
            search=args.search,
            asset_type=args.asset_type,
            sort_by=args.sort_by or self.config.default_sort_by,
            ascending=args.ascending,
        )
        logger.debug(f"Listing assets with {query}")

        try:
            assets: list[Asset] = portfolio_service.list_assets(query, args.portfolio)
            display_assets(assets)
            return 0
        except Exception as e:
            logger.error(f"Error listing assets: {e}", exc_info=True)
            print(f"Error: Failed to list assets: {e}")
            return 1
