import logging
from datetime import datetime, timezone

from portfolio_tracker.models import Asset, ConnectionState, DashboardSnapshot, Performer
from portfolio_tracker.services.metrics_service import risk_level_text
from portfolio_tracker.utils.valuation import asset_value, change_percent

logger = logging.getLogger(__name__)


def format_percentage(value: float) -> str:
    """Signed percentage with two decimals, e.g. +25.00% or -10.00%."""
    sign: str = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def format_asset_type_name(asset_type: str) -> str:
    """real_estate -> Real Estate"""
    return " ".join(word.capitalize() for word in asset_type.replace("_", " ").split(" "))


def _as_utc(value: datetime) -> datetime:
    # Naive times are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_last_updated(last_updated: datetime | None, now: datetime | None = None) -> str:
    """Relative age of the last price update, as shown next to the connection status."""
    if last_updated is None:
        return "Never"

    last_updated = _as_utc(last_updated)
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)

    seconds = int((now - last_updated).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return last_updated.date().isoformat()


def format_connection(state: ConnectionState, now: datetime | None = None) -> str:
    """One-line channel status: Live/Offline, last update age, and any error."""
    line: str = "Live" if state.is_connected else "Offline"
    if state.last_updated is not None:
        line += f" • Updated {format_last_updated(state.last_updated, now)}"
    if state.last_error:
        line += f" ({state.last_error})"
    return line


def _performer_line(label: str, performer: Performer | None) -> str:
    if performer is None:
        return f"{label}: -"
    return f"{label}: {performer.name} {format_percentage(performer.change_percent)}"


def display_dashboard(snapshot: DashboardSnapshot) -> None:
    """
    Display the portfolio dashboard as a formatted ASCII table.

    Args:
        snapshot: Summary, allocation and risk score to display
    """
    summary = snapshot.summary
    if not snapshot.allocation:
        print("No portfolio data to display.")
        return

    print("\n╔══════════════════════════════════════════════════════════╗")
    print("║                    PORTFOLIO SUMMARY                     ║")
    print("╠══════════════════════╦═══════════════════════════════════╣")
    print(f"║ Total Value          ║ {summary.total_value:>33,.2f} ║")
    print(f"║ Total Invested       ║ {summary.total_invested:>33,.2f} ║")
    print(f"║ Change               ║ {summary.today_change:>33,.2f} ║")
    print(f"║ Change %             ║ {format_percentage(summary.today_change_percent):>33} ║")
    risk_text: str = f"{snapshot.risk_score}/10 {risk_level_text(snapshot.risk_score)}"
    print(f"║ Risk                 ║ {risk_text:>33} ║")
    print("╠══════════════════════╩═══════════╦═══════════╦═══════════╣")
    print("║ Allocation                       ║ Value     ║ %         ║")
    print("╠══════════════════════════════════╬═══════════╬═══════════╣")

    for item in snapshot.allocation:
        label: str = f"{format_asset_type_name(item.type)} [{item.color}]"
        print(f"║ {label:<32} ║ {item.value:9.2f} ║ {item.percentage:8.2f}% ║")

    print("╚══════════════════════════════════╩═══════════╩═══════════╝")
    print()
    print(_performer_line("Best performer", summary.best_performer))
    print(_performer_line("Worst performer", summary.worst_performer))


def display_assets(assets: list[Asset]) -> None:
    """
    Display an asset listing with value and performance per asset.

    Args:
        assets: Assets in the order they should be listed
    """
    if not assets:
        print("No assets match.")
        return

    print("\n╔════════════════════════════╦══════════╦══════════════╦════════════╦═══════════╗")
    print("║ Asset                      ║ Symbol   ║ Type         ║ Value      ║ Return %  ║")
    print("╠════════════════════════════╬══════════╬══════════════╬════════════╬═══════════╣")

    for asset in assets:
        name: str = asset.name if len(asset.name) <= 26 else asset.name[:25] + "…"
        symbol: str = (asset.symbol or "-")[:8]
        type_name: str = format_asset_type_name(asset.asset_type)[:12]
        print(
            f"║ {name:<26} ║ "
            f"{symbol:<8} ║ "
            f"{type_name:<12} ║ "
            f"{asset_value(asset):10.2f} ║ "
            f"{format_percentage(change_percent(asset)):>9} ║"
        )

    print("╚════════════════════════════╩══════════╩══════════════╩════════════╩═══════════╝")
    print(f"{len(assets)} assets")
