import logging
import random
import time

import yfinance as yf
from pyrate_limiter import Duration, Limiter, Rate

logger: logging.Logger = logging.getLogger(__name__)

YFINANCE_BUCKET = "yfinance"


def get_rate_limiter(
    *,
    requests_per_window: int = 2,
    window_seconds: int = 5,
    max_delay_seconds: int = 60,
) -> Limiter:
    """
    Returns a limiter that throttles calls to Yahoo Finance.

    :param requests_per_window: Number of requests allowed per window
    :param window_seconds: Length of rate limit window in seconds
    :param max_delay_seconds: Longest a caller will block waiting for a slot
    :return: Configured Limiter
    """
    rate: Rate = Rate(requests_per_window, Duration.SECOND * window_seconds)
    return Limiter(
        rate, raise_when_fail=False, max_delay=Duration.SECOND * max_delay_seconds
    )


def get_last_price(symbol: str, limiter: Limiter, max_retries: int = 3) -> float | None:
    """
    Fetch the latest traded price for a Yahoo Finance symbol.

    Args:
        symbol: Yahoo Finance symbol (e.g., "AAPL", "BTC-USD", "CBA.AX")
        limiter: Rate limiter shared by all Yahoo Finance calls
        max_retries: Maximum number of retry attempts when rate limited

    Returns:
        The price if one was found and is positive, None otherwise
    """
    retry_count = 0

    while retry_count <= max_retries:
        if not limiter.try_acquire(YFINANCE_BUCKET):
            logger.warning(f"Rate limiter refused request for {symbol}, giving up")
            return None

        try:
            ticker: yf.Ticker = yf.Ticker(symbol)
            price: float | None = ticker.fast_info.last_price
            if price is not None and price > 0:
                logger.debug(f"Fetched {symbol}: last_price = {price}")
                return float(price)
            logger.warning(f"No usable price for {symbol}: {price}")
            return None

        except Exception as e:
            error_message: str = str(e).lower()

            if "no data found" in error_message or "404" in error_message:
                logger.warning(f"Invalid symbol {symbol}: {e}")
                return None

            if "rate limit" in error_message or "too many requests" in error_message:
                retry_count += 1
                if retry_count > max_retries:
                    logger.error(f"Rate limit exceeded for {symbol}")
                    return None

                # Exponential backoff with jitter
                wait_time: float = min(120, (2**retry_count) + (random.randint(0, 1000) / 1000))
                logger.warning(f"Rate limited. Waiting {wait_time:.2f}s before retrying {symbol}")
                time.sleep(wait_time)
            else:
                logger.error(f"Error fetching price for {symbol}: {e}")
                return None

    return None


def fetch_latest_prices(symbols: list[str], limiter: Limiter) -> dict[str, float]:
    """
    Fetch latest prices for several symbols, one request each.

    Returns:
        Mapping of symbol to price for the symbols that resolved
    """
    prices: dict[str, float] = {}
    for symbol in dict.fromkeys(symbols):
        price: float | None = get_last_price(symbol, limiter)
        if price is not None:
            prices[symbol] = price

    logger.info(f"Fetched prices for {len(prices)} of {len(set(symbols))} symbols")
    return prices
