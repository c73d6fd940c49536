"""Search, filter and sort assets for list display."""

import locale
import logging
import unicodedata

from portfolio_tracker.models import Asset, AssetQuery
from portfolio_tracker.utils.valuation import asset_value, change_percent

logger: logging.Logger = logging.getLogger(__name__)


def _matches_search(asset: Asset, search: str) -> bool:
    needle: str = search.lower()
    if needle in asset.name.lower():
        return True
    return bool(asset.symbol) and needle in str(asset.symbol).lower()


def _fold(text: str) -> str:
    # Drop accents so "Émile" files under E whatever LC_COLLATE is
    decomposed: str = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _name_key(asset: Asset) -> tuple[str, str]:
    # Accent- and case-insensitive order first, then the locale collation to order variants
    return locale.strxfrm(_fold(asset.name)), locale.strxfrm(asset.name)


def query_assets(assets: list[Asset], query: AssetQuery) -> list[Asset]:
    """
    Apply a list-view query to a collection of assets.

    Names sort A to Z and value/performance sort highest first; `query.ascending`
    reverses whichever order applies. Equal keys keep their input order.

    Args:
        assets: Assets to query. The list is not modified.
        query: Search text, asset type filter, sort key and direction

    Returns:
        A new list holding the matching assets in display order
    """
    result: list[Asset] = list(assets)

    if query.search.strip():
        result = [asset for asset in result if _matches_search(asset, query.search)]

    if query.asset_type != "all":
        result = [asset for asset in result if asset.asset_type == query.asset_type]

    if query.sort_by == "name":
        result.sort(key=_name_key, reverse=query.ascending)
    elif query.sort_by == "value":
        result.sort(key=asset_value, reverse=not query.ascending)
    elif query.sort_by == "performance":
        result.sort(key=change_percent, reverse=not query.ascending)
    else:
        logger.warning(f"Unknown sort key '{query.sort_by}', leaving assets unsorted")

    return result
