"""
Service container for dependency injection.

This module defines a container that manages the creation and lifecycle of
service objects, repository objects, and other application components.
"""

import logging
from typing import TypeVar, cast

from pyrate_limiter import Limiter

from portfolio_tracker.config import AppConfig
from portfolio_tracker.repositories.asset_repository import AssetRepository
from portfolio_tracker.services.portfolio_service import PortfolioService
from portfolio_tracker.services.price_transport import PriceTransport
from portfolio_tracker.services.realtime_service import RealtimePriceChannel
from portfolio_tracker.yfinance_api import get_rate_limiter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceContainer:
    """
    Container for application services and repositories.

    This class is responsible for creating and providing access to various
    application components, ensuring proper dependency injection and lifecycle
    management.
    """

    def __init__(self, config: AppConfig):
        """
        Initialise the service container.

        Args:
            config: Application configuration
        """
        self.config = config
        self._repositories: dict[type, object] = {}
        self._services: dict[type, object] = {}
        self._limiter: Limiter | None = None

        self._init_repositories()
        self._init_services()

    def _init_repositories(self) -> None:
        """Initialise all repositories."""
        self._repositories[AssetRepository] = AssetRepository(self.config.assets_path)

    def _init_services(self) -> None:
        """Initialise all services."""
        asset_repo: AssetRepository = self.get_repository(AssetRepository)
        self._services[PortfolioService] = PortfolioService(asset_repo)

    def get_repository(self, repo_type: type[T]) -> T:
        """
        Get a repository instance by type.

        Raises:
            KeyError: If repository type is not registered
        """
        if repo_type not in self._repositories:
            raise KeyError(f"Repository {repo_type.__name__} not registered")

        return cast(T, self._repositories[repo_type])

    def get_service(self, service_type: type[T]) -> T:
        """
        Get a service instance by type.

        Raises:
            KeyError: If service type is not registered
        """
        if service_type not in self._services:
            raise KeyError(f"Service {service_type.__name__} not registered")

        return cast(T, self._services[service_type])

    def create_price_channel(self, transport: PriceTransport) -> RealtimePriceChannel:
        """Build a realtime price channel using the configured connect timeout."""
        return RealtimePriceChannel(
            transport, connect_timeout_seconds=self.config.connect_timeout_seconds
        )

    def get_rate_limiter(self) -> Limiter:
        """Shared Yahoo Finance rate limiter, created on first use."""
        if self._limiter is None:
            self._limiter = get_rate_limiter(
                requests_per_window=self.config.yf_max_requests,
                window_seconds=self.config.yf_request_interval_seconds,
                max_delay_seconds=self.config.yf_max_delay_seconds,
            )
            logger.debug("Created Yahoo Finance rate limiter")
        return self._limiter
