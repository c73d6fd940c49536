"""Per-asset valuation shared by the metrics calculator and the asset query pipeline."""

from portfolio_tracker.models import Asset


def effective_price(asset: Asset) -> float:
    """
    Price used for valuation.

    A missing or zero current price falls back to the purchase price, so an
    asset that legitimately trades at zero is valued at cost.
    """
    return asset.current_price or asset.purchase_price


def asset_value(asset: Asset) -> float:
    return effective_price(asset) * asset.quantity


def asset_cost(asset: Asset) -> float:
    return asset.purchase_price * asset.quantity


def change_percent(asset: Asset) -> float:
    """Gain or loss against cost basis, in percent. Zero when the cost basis is not positive."""
    value: float = asset_value(asset)
    cost: float = asset_cost(asset)
    return (value - cost) / cost * 100 if cost > 0 else 0.0
