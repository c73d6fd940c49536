"""Dashboard command implementation."""

import argparse
import logging
from typing import override

from portfolio_tracker.commands.base import Command, CommandRegistry, add_portfolio_option
from portfolio_tracker.display import display_dashboard
from portfolio_tracker.models import DashboardSnapshot
from portfolio_tracker.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@CommandRegistry.register
class DashboardCommand(Command):
    """Command to show portfolio summary, allocation and risk."""

    name: str = "dashboard"
    help: str = "Show portfolio summary, allocation and risk"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the dashboard command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        add_portfolio_option(parser)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the dashboard command."""
        portfolio_service: PortfolioService = self.container.get_service(PortfolioService)

        try:
            snapshot: DashboardSnapshot = portfolio_service.get_dashboard(args.portfolio)
            display_dashboard(snapshot)
            return 0
        except Exception as e:
            logger.error(f"Error building dashboard: {e}", exc_info=True)
            print(f"Error: Failed to build dashboard: {e}")
            return 1
