from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from portfolio_tracker.config import AppConfig, ConfigLoader
from portfolio_tracker.models import Asset

CONFIG_DIR: Path = Path(__file__).parent.parent / "config"

ASSETS_CSV = """id,portfolio_id,asset_type,symbol,name,quantity,purchase_price,current_price,purchase_date
s-1,main,stock,ACME,Acme Corp,10,80,100,2023-01-15
c-1,main,crypto,BTC-USD,Bitcoin,2,1000,900,2023-02-01
f-1,main,fixed_income,,Treasury Bond,50,10,10,2023-03-10
r-1,side,real_estate,VNQ,Real Estate ETF,4,50,,2023-04-20
"""


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects scheduled callbacks so tests decide when time passes."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def fire_all(self) -> None:
        for timer in self.pending:
            timer.callback()


class RecordingTransport:
    """Transport double that keeps every subscription's callbacks, even after unsubscribe."""

    def __init__(self):
        self.subscriptions: list[dict[str, Any]] = []
        self.unsubscribed: list[int] = []

    def subscribe(self, portfolio_id: str, on_event, on_status_change) -> int:
        handle = len(self.subscriptions) + 1
        self.subscriptions.append(
            {
                "handle": handle,
                "portfolio_id": portfolio_id,
                "on_event": on_event,
                "on_status_change": on_status_change,
            }
        )
        return handle

    def unsubscribe(self, handle: int) -> None:
        self.unsubscribed.append(handle)

    @property
    def latest(self) -> dict[str, Any]:
        return self.subscriptions[-1]

    def open(self) -> None:
        self.latest["on_status_change"]("SUBSCRIBED")

    def send(self, payload: Any) -> None:
        self.latest["on_event"](payload)


@pytest.fixture
def make_asset() -> Callable[..., Asset]:
    """Factory for assets with sensible defaults."""

    def _make_asset(**overrides: Any) -> Asset:
        values: dict[str, Any] = {
            "id": "a-1",
            "asset_type": "stock",
            "name": "Asset",
            "quantity": 1.0,
            "purchase_price": 100.0,
            "current_price": None,
        }
        values.update(overrides)
        return Asset(**values)

    return _make_asset


@pytest.fixture
def scenario_assets() -> list[Asset]:
    """Stock up 25%, crypto down 10%, bond flat; 3300 invested and 3300 held."""
    return [
        Asset(
            id="s-1",
            asset_type="stock",
            symbol="ACME",
            name="Acme Corp",
            quantity=10,
            purchase_price=80,
            current_price=100,
        ),
        Asset(
            id="c-1",
            asset_type="crypto",
            symbol="BTC-USD",
            name="Bitcoin",
            quantity=2,
            purchase_price=1000,
            current_price=900,
        ),
        Asset(
            id="f-1",
            asset_type="fixed_income",
            name="Treasury Bond",
            quantity=50,
            purchase_price=10,
            current_price=10,
        ),
    ]


@pytest.fixture
def assets_csv(tmp_path: Path) -> Path:
    path: Path = tmp_path / "assets.csv"
    path.write_text(ASSETS_CSV)
    return path


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def app_config() -> AppConfig:
    """Load the test AppConfig from the real config files."""
    return ConfigLoader.load_app_config(env="test", config_dir=CONFIG_DIR)


@pytest.fixture
def isolated_config_dir(tmp_path: Path) -> Path:
    """
    Copy the real config files into a temporary directory.
    Use this when a test needs to modify config files.
    """
    test_config_dir: Path = tmp_path / "config"
    test_config_dir.mkdir()

    for config_file in CONFIG_DIR.glob("*.yaml"):
        with open(config_file, "r") as src_file:
            content: dict[str, Any] = yaml.safe_load(src_file) or {}

        if "log_file_path" in content:
            content["log_file_path"] = str(tmp_path / "logs" / "test.log")

        with open(test_config_dir / config_file.name, "w") as dest_file:
            yaml.dump(content, dest_file)

    return test_config_dir
