"""
USD exchange rates: fetching the daily rate table and converting amounts.

The rate table maps a 3-letter currency code to the units of that currency
per 1 USD, as published by the open exchange rate API. Conversion never
raises: whatever prevents a conversion comes back as an ``Unavailable`` value
whose placeholder text is shown in the output instead of an amount.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

import requests

from creditlog.config import DEFAULT_RATES_URL
from creditlog.exceptions import RateFetchError
from creditlog.logger import setup_logger
from creditlog.models import Number
from creditlog.parser import to_number

logger = setup_logger(__name__)

RateTable = Dict[str, float]


class UnavailableReason(str, Enum):
    INVALID_AMOUNT = "InvalidAmount"
    CURRENCY_UNKNOWN = "CurrencyUnknown"
    RATES_UNAVAILABLE = "RatesUnavailable"
    RATE_NOT_FOUND = "RateNotFound"


@dataclass(frozen=True)
class Unavailable:
    """
    Why an amount could not be converted, with the text to display instead.

    For RATE_NOT_FOUND, ``amount`` keeps the unconverted numeric amount.
    """

    reason: UnavailableReason
    placeholder: str
    amount: Optional[Number] = None

    def __str__(self) -> str:
        return self.placeholder


Conversion = Union[Number, Unavailable, None]


def _is_rate(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def request_rates(url: str = DEFAULT_RATES_URL, timeout: float = 10.0) -> RateTable:
    """
    Downloads the USD-based rate table.

    Entries whose rate is not a finite number are left out of the table.

    Raises:
        RateFetchError: On timeouts, HTTP errors, invalid JSON or an API
            response whose ``result`` is not ``"success"``.
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.Timeout as e:
        raise RateFetchError(
            f"Rate request timeout after {timeout}s", details={"url": url, "timeout": timeout}
        ) from e
    except requests.exceptions.HTTPError as e:
        raise RateFetchError(
            f"Rate provider returned HTTP error: {e}",
            details={"url": url, "status_code": getattr(e.response, "status_code", None)},
        ) from e
    except requests.exceptions.RequestException as e:
        raise RateFetchError(
            f"Failed to connect to rate provider: {e}", details={"url": url, "error": str(e)}
        ) from e

    try:
        data = response.json()
    except ValueError as e:
        raise RateFetchError(f"Rate provider returned invalid JSON: {e}", details={"url": url}) from e

    if not isinstance(data, dict) or data.get("result") != "success":
        error_type = data.get("error-type") if isinstance(data, dict) else None
        raise RateFetchError(
            f"API returned an error: {error_type}", details={"url": url, "error_type": error_type}
        )

    rates = data.get("rates")
    if not isinstance(rates, dict):
        raise RateFetchError("API response has no rate table", details={"url": url})

    table = {str(code).upper(): rate for code, rate in rates.items() if _is_rate(rate)}
    if len(table) < len(rates):
        logger.warning(f"Ignored {len(rates) - len(table)} non-numeric exchange rate(s).")
    return table


def fetch_rates(url: str = DEFAULT_RATES_URL, timeout: float = 10.0) -> Optional[RateTable]:
    """
    Fetches the rate table once for a batch.

    Returns None instead of raising when the provider is unreachable or
    answers with an error, so the batch can still be processed without USD
    conversion. There is no retry.
    """
    try:
        rates = request_rates(url, timeout)
    except RateFetchError as e:
        logger.error(f"Could not fetch exchange rates. Conversion to USD will not be available. {e}")
        return None
    logger.info(f"Successfully fetched {len(rates)} exchange rates.")
    return rates


def _as_number(amount: Union[Number, str]) -> Optional[Number]:
    if isinstance(amount, bool):
        return None
    if isinstance(amount, (int, float)):
        return amount if math.isfinite(amount) else None
    return to_number(str(amount))


def to_usd(
    amount: Union[Number, str, None], currency: Optional[str], rates: Optional[RateTable]
) -> Conversion:
    """
    Converts an amount to USD.

    Args:
        amount: The amount as decoded, or its text.
        currency: The 3-letter code of the amount.
        rates: Units of each currency per 1 USD, or None when the rate table
            could not be fetched.

    Returns:
        None for a blank amount, the USD value on success (USD amounts are
        returned unchanged), otherwise an Unavailable value.
    """
    if amount is None or amount == "":
        return None
    if not currency:
        return Unavailable(UnavailableReason.CURRENCY_UNKNOWN, "N/A")

    numeric = _as_number(amount)
    if numeric is None:
        return Unavailable(UnavailableReason.INVALID_AMOUNT, "Invalid Amount")

    if rates is None:
        return Unavailable(UnavailableReason.RATES_UNAVAILABLE, "Failed to fetch rates")

    code = currency.upper()
    if code == "USD":
        return numeric

    rate = rates.get(code)
    if not _is_rate(rate) or not rate:
        logger.warning(f"Exchange rate for {code} not found.")
        return Unavailable(
            UnavailableReason.RATE_NOT_FOUND, f"{numeric:.2f} {currency} (No Rate)", numeric
        )

    return numeric / rate
