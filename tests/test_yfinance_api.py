from unittest.mock import MagicMock, PropertyMock

import pytest
from pyrate_limiter import Limiter

from portfolio_tracker.yfinance_api import (
    YFINANCE_BUCKET,
    fetch_latest_prices,
    get_last_price,
    get_rate_limiter,
)


@pytest.fixture
def limiter():
    """A limiter that always grants a slot."""
    mock_limiter = MagicMock()
    mock_limiter.try_acquire.return_value = True
    return mock_limiter


@pytest.fixture
def mock_ticker(mocker):
    return mocker.patch("portfolio_tracker.yfinance_api.yf.Ticker")


class TestGetLastPrice:
    def test_returns_positive_price(self, limiter, mock_ticker):
        mock_ticker.return_value.fast_info.last_price = 187.5

        assert get_last_price("AAPL", limiter) == 187.5
        mock_ticker.assert_called_once_with("AAPL")
        limiter.try_acquire.assert_called_once_with(YFINANCE_BUCKET)

    @pytest.mark.parametrize("price", [None, 0, -1.0])
    def test_unusable_price_is_none(self, limiter, mock_ticker, price):
        mock_ticker.return_value.fast_info.last_price = price

        assert get_last_price("AAPL", limiter) is None

    def test_refused_by_limiter(self, mock_ticker):
        refusing = MagicMock()
        refusing.try_acquire.return_value = False

        assert get_last_price("AAPL", refusing) is None
        mock_ticker.assert_not_called()

    def test_invalid_symbol(self, limiter, mock_ticker):
        mock_ticker.side_effect = Exception("404 Client Error: Not Found")

        assert get_last_price("NOPE", limiter) is None

    def test_retries_when_rate_limited(self, limiter, mock_ticker, mocker):
        mock_sleep = mocker.patch("portfolio_tracker.yfinance_api.time.sleep")
        fast_info = MagicMock()
        type(fast_info).last_price = PropertyMock(
            side_effect=[Exception("Too Many Requests. Rate limited."), 42.0]
        )
        mock_ticker.return_value.fast_info = fast_info

        assert get_last_price("AAPL", limiter) == 42.0
        mock_sleep.assert_called_once()
        assert limiter.try_acquire.call_count == 2

    def test_gives_up_after_max_retries(self, limiter, mock_ticker, mocker):
        mock_sleep = mocker.patch("portfolio_tracker.yfinance_api.time.sleep")
        mock_ticker.side_effect = Exception("rate limit exceeded")

        assert get_last_price("AAPL", limiter, max_retries=2) is None
        assert mock_sleep.call_count == 2

    def test_other_errors_are_not_retried(self, limiter, mock_ticker, mocker):
        mock_sleep = mocker.patch("portfolio_tracker.yfinance_api.time.sleep")
        mock_ticker.side_effect = Exception("connection reset")

        assert get_last_price("AAPL", limiter) is None
        mock_sleep.assert_not_called()


class TestFetchLatestPrices:
    def test_fetches_each_symbol_once(self, limiter, mocker):
        mock_get = mocker.patch(
            "portfolio_tracker.yfinance_api.get_last_price",
            side_effect=lambda symbol, _limiter: {"AAPL": 190.0, "MSFT": None}[symbol],
        )

        prices = fetch_latest_prices(["AAPL", "MSFT", "AAPL"], limiter)

        assert prices == {"AAPL": 190.0}
        assert mock_get.call_count == 2


def test_get_rate_limiter_returns_limiter():
    limiter = get_rate_limiter(requests_per_window=5, window_seconds=1, max_delay_seconds=2)

    assert isinstance(limiter, Limiter)
    assert limiter.try_acquire(YFINANCE_BUCKET)
