"""Portfolio summary, allocation and risk metrics derived from a list of assets."""

import math

from portfolio_tracker.models import ASSET_TYPES, AllocationItem, Asset, Performer, PortfolioSummary
from portfolio_tracker.utils.valuation import asset_cost, asset_value, change_percent

# Higher is riskier
RISK_WEIGHTS: dict[str, int] = {
    "crypto": 9,
    "stock": 6,
    "commodity": 5,
    "real_estate": 4,
    "fixed_income": 2,
    "other": 5,
}
DEFAULT_RISK_WEIGHT = 5
DEFAULT_RISK_SCORE = 5

ASSET_TYPE_COLORS: dict[str, str] = {
    "stock": "#1E3A8A",
    "crypto": "#10B981",
    "real_estate": "#F59E0B",
    "fixed_income": "#8B5CF6",
    "commodity": "#EC4899",
}
DEFAULT_ASSET_TYPE_COLOR = "#687076"


def get_asset_type_color(asset_type: str) -> str:
    """Chart colour for an asset type. Unknown types (including 'other') get the neutral colour."""
    return ASSET_TYPE_COLORS.get(asset_type.lower(), DEFAULT_ASSET_TYPE_COLOR)


def normalise_asset_type(asset_type: str | None) -> str:
    if asset_type and asset_type in ASSET_TYPES:
        return asset_type
    return "other"


def compute_summary(assets: list[Asset]) -> PortfolioSummary:
    """
    Calculate the headline figures for a portfolio.

    Best and worst performers are seeded by the first asset and only replaced on a
    strictly better or worse change, so ties keep the earliest asset.

    Args:
        assets: Assets to summarise, in any order

    Returns:
        The summary; all zeros with no performers for an empty list
    """
    if not assets:
        return PortfolioSummary(
            total_value=0.0,
            total_invested=0.0,
            today_change=0.0,
            today_change_percent=0.0,
            best_performer=None,
            worst_performer=None,
        )

    total_value = 0.0
    total_invested = 0.0
    best: Performer | None = None
    worst: Performer | None = None

    for asset in assets:
        performance: float = change_percent(asset)
        total_value += asset_value(asset)
        total_invested += asset_cost(asset)

        if best is None or performance > best.change_percent:
            best = Performer(name=asset.name, change_percent=performance)
        if worst is None or performance < worst.change_percent:
            worst = Performer(name=asset.name, change_percent=performance)

    today_change: float = total_value - total_invested
    today_change_percent: float = (
        today_change / total_invested * 100 if total_invested > 0 else 0.0
    )

    return PortfolioSummary(
        total_value=total_value,
        total_invested=total_invested,
        today_change=today_change,
        today_change_percent=today_change_percent,
        best_performer=best,
        worst_performer=worst,
    )


def compute_allocation(assets: list[Asset]) -> list[AllocationItem]:
    """
    Break portfolio value down by asset type.

    Items are returned in order of each type's first appearance in `assets`;
    chart legends rely on that order.
    """
    type_values: dict[str, float] = {}
    total_value = 0.0

    for asset in assets:
        value: float = asset_value(asset)
        asset_type: str = normalise_asset_type(asset.asset_type)
        type_values[asset_type] = type_values.get(asset_type, 0.0) + value
        total_value += value

    return [
        AllocationItem(
            type=asset_type,
            value=value,
            percentage=(value / total_value * 100) if total_value > 0 else 0.0,
            color=get_asset_type_color(asset_type),
        )
        for asset_type, value in type_values.items()
    ]


def compute_risk(allocation: list[AllocationItem]) -> int:
    """
    Score portfolio risk from 0 (safest) to 10, weighting each allocation slice by its type.

    Works from an existing allocation so callers can reuse one they already computed.
    """
    if not allocation:
        return DEFAULT_RISK_SCORE

    weighted_risk = 0.0
    total_percentage = 0.0
    for item in allocation:
        weight: int = RISK_WEIGHTS.get(item.type.lower(), DEFAULT_RISK_WEIGHT)
        weighted_risk += weight * item.percentage
        total_percentage += item.percentage

    if total_percentage == 0:
        return DEFAULT_RISK_SCORE

    # Half-up, not round()'s half-to-even
    return math.floor(weighted_risk / total_percentage + 0.5)


def risk_level_text(score: int) -> str:
    if score < 4:
        return "Low Risk"
    if score <= 7:
        return "Moderate"
    return "High Risk"
