"""Helper utilities for the Citrex Python SDK.

This module contains utility functions for serialization, deserialization,
API response inspection, fixed-point conversion, slippage handling, nonce
and timestamp generation, and display formatting.
"""

import logging
import threading
from dataclasses import asdict, is_dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from functools import lru_cache
from time import time_ns
from typing import Any

import orjson
from prettyprinter import cpprint

from citrex_sdk.errors import (
    DeserializationError,
    SerializationError,
    ValidationError,
)
from citrex_sdk.types import (
    CitrexNumericInput,
    Json,
    JsonValue,
    Nonce,
    Result,
    numeric_to_decimal,
)

log = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

THIRTY_DAYS_MS: int = 2_592_000_000

WEI_DECIMALS: int = 18
USDC_DECIMALS: int = 6

# enough digits for any uint128 scaled value
_FIXED_POINT_PRECISION: int = 80


# ============================================================================
# CLIENT IDENTIFICATION
# ============================================================================


@lru_cache(maxsize=1)
def get_citrex_client() -> str:
    """Get the Citrex client identification string."""
    import citrex_sdk

    return f"CitrexPythonSDK/{citrex_sdk.__version__}"


# ============================================================================
# SERIALIZATION / DESERIALIZATION
# ============================================================================


def decimal_as_str(obj: object) -> str:
    """Serialize Decimal objects to JSON strings.

    Converts Decimal to string to preserve precision in JSON serialization.
    """
    if isinstance(obj, Decimal):
        return str(obj)

    raise TypeError


def serialize_request(request: Json | None) -> bytes | None:
    """Serialize a request object to JSON bytes.

    Uses orjson for fast serialization with custom Decimal handling. Key order
    of the request dict is preserved on the wire.

    Args:
        request: Request data to serialize

    Returns:
        JSON bytes or None if request is None

    Raises:
        SerializationError: If serialization fails

    """
    if request is None:
        return None
    try:
        return orjson.dumps(request, default=decimal_as_str)
    except Exception as e:
        raise SerializationError(f"Failed to serialize {request=}") from e


def deserialize_response(response_body: bytes, url: str) -> Json:
    """Deserialize a JSON response body.

    Args:
        response_body: Response bytes to deserialize
        url: URL that was requested (for error messages)

    Returns:
        Deserialized JSON object or array

    Raises:
        DeserializationError: If deserialization fails

    """
    try:
        return orjson.loads(response_body)  # type: ignore
    except Exception as e:
        raise DeserializationError(
            f"Failed to parse JSON response from {url}: {e}"
        ) from e


# ============================================================================
# API RESPONSE INSPECTION
# ============================================================================


def extract_api_error(body: JsonValue) -> str | None:
    """Return the message of a structured ``{"error": ...}`` response, if any.

    Citrex reports rejected requests as an object carrying a non-empty
    ``error`` field, whatever the HTTP status.
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if not error:
        return None
    return error if isinstance(error, str) else str(error)


def without_error_field(body: JsonValue) -> JsonValue:
    """Strip the ``error`` key from an object response."""
    if isinstance(body, dict):
        return {k: v for k, v in body.items() if k != "error"}
    return body


# ============================================================================
# FIXED-POINT CONVERSION
# ============================================================================


def parse_units(value: CitrexNumericInput, decimals: int) -> int:
    """Convert a human readable amount into a fixed-point integer.

    The amount is parsed as a decimal, scaled by ``10**decimals`` and rounded
    half-up to the nearest integer. Floats never take part in the arithmetic.

    Args:
        value: Decimal amount (e.g. ``"0.001"`` or ``3450``)
        decimals: Number of decimal places of the target representation

    Returns:
        The scaled integer

    Raises:
        ValidationError: If ``value`` is not a valid non-negative number

    """
    amount = numeric_to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = _FIXED_POINT_PRECISION
        return int(amount.scaleb(decimals).to_integral_value(rounding=ROUND_HALF_UP))


def format_units(value: int, decimals: int) -> Decimal:
    """Inverse of parse_units."""
    with localcontext() as ctx:
        ctx.prec = _FIXED_POINT_PRECISION
        return Decimal(value).scaleb(-decimals).normalize()


def to_fixed18(value: CitrexNumericInput) -> int:
    """Convert a price or quantity to its 18 decimal on-chain form."""
    return parse_units(value, WEI_DECIMALS)


def to_fixed6(value: CitrexNumericInput) -> int:
    """Convert a USDC amount to its 6 decimal on-chain form."""
    return parse_units(value, USDC_DECIMALS)


# ============================================================================
# PRICE UTILITIES
# ============================================================================


def price_precision(price_increment: int) -> int:
    """Number of decimal places implied by an 18 decimal tick size.

    ``10**17`` (a tick of 0.1) gives 1 and ``10**16`` gives 2. Ticks that are
    not a power of ten are rounded up to the next whole number of places, so
    ``5 * 10**16`` (0.05) gives 2.
    """
    if isinstance(price_increment, bool) or not isinstance(price_increment, int):
        raise ValidationError(f"Invalid price increment {price_increment!r}")
    if price_increment <= 0:
        raise ValidationError(f"Price increment must be positive, got {price_increment}")
    return WEI_DECIMALS - (len(str(price_increment)) - 1)


def adjust_price_for_slippage(
    is_buy: bool,
    price: CitrexNumericInput,
    slippage: CitrexNumericInput,
    price_increment: int,
) -> Decimal:
    """Move a reference price against the taker by ``slippage`` percent.

    Buys are raised by ``1 + slippage/100`` and sells lowered by
    ``1 - slippage/100``. The result is rounded half away from zero to the
    precision of ``price_increment``.

    Args:
        is_buy: Order side
        price: Reference price
        slippage: Percentage between 0 and 100
        price_increment: Product tick size as an 18 decimal integer

    Returns:
        The adjusted price

    Raises:
        ValidationError: If an input is not a valid number or slippage exceeds 100

    Example:
        .. code-block:: python

            adjust_price_for_slippage(True, 3450, 2.5, 10**17)  # Decimal("3536.3")

    """
    price_dec = numeric_to_decimal(price)
    slippage_dec = numeric_to_decimal(slippage)
    if slippage_dec > 100:
        raise ValidationError(f"Slippage must be between 0 and 100, got {slippage_dec}")
    precision = price_precision(price_increment)

    with localcontext() as ctx:
        ctx.prec = _FIXED_POINT_PRECISION
        ratio = slippage_dec / 100
        multiplier = 1 + ratio if is_buy else 1 - ratio
        return (price_dec * multiplier).quantize(
            Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP
        )


# ============================================================================
# TIME UTILITIES
# ============================================================================


def current_timestamp_ms() -> int:
    """Wall clock time in milliseconds."""
    return time_ns() // 1_000_000


def generate_nonce() -> Nonce:
    """Wall clock time in microseconds."""
    return time_ns() // 1_000


def default_expiration() -> int:
    """Millisecond timestamp thirty days from now."""
    return current_timestamp_ms() + THIRTY_DAYS_MS


class NonceGenerator:
    """Hands out clock based nonces that strictly increase.

    Two orders signed in the same microsecond (e.g. by ``place_orders``)
    would otherwise share a nonce.
    """

    def __init__(self) -> None:
        self._last: Nonce = 0
        self._lock = threading.Lock()

    def next(self) -> Nonce:
        with self._lock:
            nonce = max(generate_nonce(), self._last + 1)
            self._last = nonce
            return nonce


# ============================================================================
# CALL LOG
# ============================================================================


class CallLogHandler(logging.Handler):
    """Keeps the SDK's log records in memory as ``{"level", "msg"}`` entries.

    Records carrying an exception also get an ``err`` entry with its text.
    """

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.entries: list[dict[str, str]] = []

    def emit(self, record: logging.LogRecord) -> None:
        entry = {"level": record.levelname.lower(), "msg": record.getMessage()}
        if record.exc_info and record.exc_info[1] is not None:
            entry["err"] = repr(record.exc_info[1])
        self.entries.append(entry)


# ============================================================================
# DISPLAY UTILITIES
# ============================================================================


def print_data(response: Any) -> None:
    """Pretty-print response data, handling results and dataclasses specially.

    Args:
        response: Data to print

    """
    if isinstance(response, Result):
        cpprint(response.to_dict())
    elif is_dataclass(response) and not isinstance(response, type):
        cpprint(asdict(response))
    else:
        cpprint(response)
