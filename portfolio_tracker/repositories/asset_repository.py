import logging
from pathlib import Path

from portfolio_tracker.importer import load_assets
from portfolio_tracker.models import Asset

logger = logging.getLogger(__name__)


class AssetRepository:
    """Read-only asset source backed by a CSV file. Each call reads a fresh snapshot."""

    def __init__(self, csv_path: Path):
        self.csv_path = csv_path

    def get_all(self, portfolio_id: str | None = None) -> list[Asset]:
        """Get all assets, optionally only those of one portfolio."""
        assets: list[Asset] = load_assets(self.csv_path)
        if portfolio_id is None:
            return assets
        return [asset for asset in assets if asset.portfolio_id == portfolio_id]

    def get_portfolio_ids(self) -> list[str]:
        """Distinct portfolio ids in first-seen order."""
        ids: dict[str, None] = {}
        for asset in load_assets(self.csv_path):
            if asset.portfolio_id:
                ids.setdefault(asset.portfolio_id, None)
        return list(ids)
