import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from portfolio_tracker.models import ASSET_TYPES, Asset

logger: logging.Logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: tuple[str, ...] = ("id", "asset_type", "name", "quantity", "purchase_price")
OPTIONAL_COLUMNS: tuple[str, ...] = ("portfolio_id", "symbol", "current_price", "purchase_date")


# --- CSV Parsing Functions  ---
def parse_csv_date(value: Any) -> date | None:
    """Parses a YYYY-MM-DD string from CSV into a date. Blank values give None."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected string for date, got {type(value)}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date format: '{value}'. Expected format is %Y-%m-%d")


def parse_csv_float(value: Any, field_name: str) -> float:
    """Parses a value from CSV into a float."""
    if isinstance(value, str) and value.strip() == "":
        raise ValueError(f"Empty string value for '{field_name}'")
    if value is None:
        raise ValueError(f"Missing value for '{field_name}'")

    try:
        return float(value)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float value for '{field_name}': '{value}' (type: {type(value)})")


def parse_csv_quantity(value: Any) -> float:
    qty = parse_csv_float(value, "quantity")
    if qty <= 0:
        raise ValueError(f"Quantity must be positive, got {qty}")
    return qty


def parse_csv_purchase_price(value: Any) -> float:
    price = parse_csv_float(value, "purchase_price")
    if price < 0:
        raise ValueError(f"Purchase price cannot be negative, got {price}")
    return price


def parse_csv_current_price(value: Any) -> float | None:
    # Current price is optional; a blank cell means "not priced yet".
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    price = parse_csv_float(value, "current_price")
    if price < 0:
        raise ValueError(f"Current price cannot be negative, got {price}")
    return price


def parse_csv_asset_type(value: Any) -> str:
    asset_type: str = str(value).strip().lower()
    if asset_type not in ASSET_TYPES:
        raise ValueError(f"Unknown asset type '{value}'. Expected one of {', '.join(ASSET_TYPES)}")
    return asset_type


def _optional_str(value: Any) -> str | None:
    text: str = str(value).strip() if value is not None else ""
    return text or None


def parse_asset_row(row: dict[str, Any]) -> Asset:
    """
    Build an Asset from one CSV row.

    Raises:
        ValueError: If any field fails validation
    """
    asset_id: str = str(row.get("id", "")).strip()
    if not asset_id:
        raise ValueError("Missing value for 'id'")
    name: str = str(row.get("name", "")).strip()
    if not name:
        raise ValueError("Missing value for 'name'")

    return Asset(
        id=asset_id,
        asset_type=parse_csv_asset_type(row.get("asset_type")),
        name=name,
        quantity=parse_csv_quantity(row.get("quantity")),
        purchase_price=parse_csv_purchase_price(row.get("purchase_price")),
        current_price=parse_csv_current_price(row.get("current_price")),
        symbol=_optional_str(row.get("symbol")),
        purchase_date=parse_csv_date(row.get("purchase_date")),
        portfolio_id=_optional_str(row.get("portfolio_id")),
    )


def load_assets(csv_path: Path) -> list[Asset]:
    """
    Read assets from a CSV file, skipping rows that fail validation.

    Args:
        csv_path: CSV with at least the columns in REQUIRED_COLUMNS

    Returns:
        Valid assets in file order

    Raises:
        ValueError: If a required column is missing
    """
    df: pd.DataFrame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    missing: list[str] = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"{csv_path} is missing required columns: {', '.join(missing)}")

    assets: list[Asset] = []
    seen_ids: set[tuple[str | None, str]] = set()
    # Row numbers are 1-based and count the header line
    for row_num, (_, row) in enumerate(df.iterrows(), start=2):
        try:
            asset: Asset = parse_asset_row(row.to_dict())
        except ValueError as e:
            logger.warning(f"Skipping row {row_num} of {csv_path}: {e}")
            continue

        key = (asset.portfolio_id, asset.id)
        if key in seen_ids:
            logger.warning(f"Skipping row {row_num} of {csv_path}: duplicate asset id '{asset.id}'")
            continue
        seen_ids.add(key)
        assets.append(asset)

    logger.info(f"Loaded {len(assets)} assets from {csv_path}")
    return assets


def load_price_events(path: Path) -> list[Any]:
    """
    Read raw price event payloads from a JSON-lines file.

    Lines that are not valid JSON are logged and skipped; payload validation is
    left to the realtime channel.
    """
    payloads: list[Any] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                payloads.append(json.loads(line))
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping line {line_num} of {path}: {e}")
    logger.info(f"Loaded {len(payloads)} price events from {path}")
    return payloads
