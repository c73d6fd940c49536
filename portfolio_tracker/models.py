# models.py
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

AssetType = Literal["stock", "crypto", "commodity", "real_estate", "fixed_income", "other"]
AssetTypeFilter = Literal[
    "all", "stock", "crypto", "commodity", "real_estate", "fixed_income", "other"
]
SortKey = Literal["name", "value", "performance"]
ConnectionStatus = Literal["disconnected", "connecting", "connected", "error"]

ASSET_TYPES: tuple[str, ...] = (
    "stock",
    "crypto",
    "commodity",
    "real_estate",
    "fixed_income",
    "other",
)
SORT_KEYS: tuple[str, ...] = ("name", "value", "performance")


@dataclass
class Asset:
    id: str
    asset_type: str
    name: str
    quantity: float
    purchase_price: float
    current_price: float | None = None
    symbol: str | None = None
    purchase_date: date | None = None
    portfolio_id: str | None = None


@dataclass(frozen=True)
class Performer:
    name: str
    change_percent: float


@dataclass(frozen=True)
class PortfolioSummary:
    """
    Aggregate valuation of a set of assets. Derived on every call, never stored.
    """

    total_value: float
    total_invested: float
    today_change: float
    today_change_percent: float
    best_performer: Performer | None
    worst_performer: Performer | None


@dataclass(frozen=True)
class AllocationItem:
    type: str
    value: float
    percentage: float
    color: str


@dataclass(frozen=True)
class DashboardSnapshot:
    summary: PortfolioSummary
    allocation: list[AllocationItem]
    risk_score: int


@dataclass(frozen=True)
class AssetQuery:
    search: str = ""
    asset_type: AssetTypeFilter = "all"
    sort_by: SortKey = "name"
    ascending: bool = False


@dataclass(frozen=True)
class PriceEvent:
    asset_id: str
    price: float
    timestamp: datetime | None = None


@dataclass(frozen=True)
class ConnectionState:
    """
    Health of the realtime price channel, as exposed to readers.
    """

    status: ConnectionStatus = "disconnected"
    last_updated: datetime | None = None
    last_error: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.status == "connected"
