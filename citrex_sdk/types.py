"""Type definitions for the Citrex Python SDK.

This module contains type definitions, enums, and dataclasses used throughout
the SDK, organized into logical sections for clarity.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, Self, TypeAlias, TypeVar, overload

from citrex_sdk.errors import ValidationError

# ============================================================================
# TYPE ALIASES
# ============================================================================

Nonce: TypeAlias = int
OrderId: TypeAlias = str  # 0x-prefixed 32 byte hex
Address: TypeAlias = str

# JSON type hierarchy
JsonObject: TypeAlias = dict[str, "JsonValue"]
JsonArray: TypeAlias = list["JsonValue"]
JsonValue: TypeAlias = None | bool | int | float | str | JsonObject | JsonArray
# Citrex returns arrays at the root for list endpoints
Json: TypeAlias = JsonObject | JsonArray

CitrexNumericInput: TypeAlias = Decimal | str | float | int


# ============================================================================
# NUMERIC CONVERSION UTILITIES
# ============================================================================

DECIMAL_PATTERN = re.compile(r"^\d+(\.\d+)?$")


@overload
def numeric_to_decimal(n: CitrexNumericInput) -> Decimal: ...


@overload
def numeric_to_decimal(n: None) -> None: ...


def numeric_to_decimal(n: CitrexNumericInput | None) -> Decimal | None:
    """Convert various numeric input types to Decimal, or None if input is None.

    Floats go through their shortest ``repr`` so ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if n is None:
        return n
    if isinstance(n, bool):
        raise ValidationError(f"Invalid numeric input type {n} - {type(n)}")
    if isinstance(n, str):
        if not DECIMAL_PATTERN.match(n):
            raise ValidationError(f"Invalid numeric input {n}")
        return Decimal(n)
    if isinstance(n, (int, float)):
        n = Decimal(str(n))
    if not isinstance(n, Decimal):
        raise ValidationError(f"Invalid numeric input type {n} - {type(n)}")
    if not n.is_finite() or n < 0:
        raise ValidationError(f"Invalid numeric input {n}")
    return n


# ============================================================================
# CORE ENUMS
# ============================================================================


class Environment(Enum):
    """Exchange deployment the client talks to."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class OrderType(Enum):
    """Order type code as signed in the Order typed message."""

    LIMIT = 0
    LIMIT_MAKER = 1
    MARKET = 2
    LIMIT_REDUCE_ONLY = 3


class TimeInForce(Enum):
    """Time in force code as signed in the Order typed message."""

    GTC = 0
    FOK = 1
    IOC = 2


class Interval(Enum):
    """Time intervals for klines/candlestick data."""

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    TWO_HOURS = "2h"
    FOUR_HOURS = "4h"
    EIGHT_HOURS = "8h"
    ONE_DAY = "1d"
    THREE_DAYS = "3d"
    ONE_WEEK = "1w"


class MarginAsset(Enum):
    """Assets accepted as margin by the vault."""

    USDC = "USDC"


# ============================================================================
# REQUEST ARGUMENTS
# ============================================================================


@dataclass
class OrderArgs:
    """Parameters of a new order.

    Attributes:
        is_buy: True for a bid, False for an ask
        price: Limit price, or reference price for market orders
        product_id: Numeric id of the perpetual product
        quantity: Order size in base units
        order_type: Order type (default MARKET)
        time_in_force: Time in force (default FOK)
        expiration: Expiry as a unix timestamp in milliseconds (default now + 30 days)
        nonce: Explicit nonce (default generated from the wall clock)
        slippage: Percentage applied to market order prices (default 2.5)
        price_increment: Product tick size as an 18 decimal integer, required for market orders

    """

    is_buy: bool
    price: CitrexNumericInput
    product_id: int
    quantity: CitrexNumericInput
    order_type: OrderType = OrderType.MARKET
    time_in_force: TimeInForce = TimeInForce.FOK
    expiration: int | None = None
    nonce: Nonce | None = None
    slippage: CitrexNumericInput = Decimal("2.5")
    price_increment: int | None = None


@dataclass
class ReplacementOrderArgs:
    """Parameters of the order placed by cancel-and-replace."""

    is_buy: bool
    price: CitrexNumericInput
    product_id: int
    quantity: CitrexNumericInput
    expiration: int | None = None
    nonce: Nonce | None = None


@dataclass
class CancelOrderArgs:
    """Identifies a single order to cancel."""

    order_id: OrderId
    product_id: int


@dataclass
class KlineOptionalArgs:
    """Optional filters for a K-line query. Times are unix milliseconds."""

    end_time: int | None = None
    interval: Interval | None = None
    limit: int | None = None
    start_time: int | None = None

    def to_query(self) -> dict[str, str]:
        """Return the supplied filters as camelCase query parameters."""
        params: dict[str, str] = {}
        if self.end_time is not None:
            params["endTime"] = str(self.end_time)
        if self.interval is not None:
            params["interval"] = self.interval.value
        if self.limit is not None:
            params["limit"] = str(self.limit)
        if self.start_time is not None:
            params["startTime"] = str(self.start_time)
        return params


# ============================================================================
# RESULTS
# ============================================================================

T = TypeVar("T")

UNKNOWN_ERROR = "An unknown error occurred. Try enabling debug mode for mode detail."


class ResultKind(Enum):
    """How an operation ended."""

    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    API_ERROR = "api_error"
    UNKNOWN_ERROR = "unknown_error"


@dataclass(frozen=True)
class ErrorInfo:
    """Error attached to a failed Result."""

    message: str
    error_name: str | None = None

    def to_dict(self) -> JsonObject:
        if self.error_name is None:
            return {"message": self.message}
        return {"errorName": self.error_name, "message": self.message}


@dataclass(frozen=True)
class Result(Generic[T]):
    """Uniform outcome of a public client operation.

    ``key`` names the payload (``"order"``, ``"success"``, ...). When ``key`` is
    None the value is a mapping whose entries sit at the top level of the
    rendered envelope, as for ``get_order_book`` (``asks`` and ``bids``).

    On failure ``value`` holds the operation's fallback (``{}``, ``[]``,
    ``False``...) and ``error`` describes what went wrong.

    Example:
        .. code-block:: python

            result = await client.place_order(True, 3450, 1002, "0.001", price_increment=10**17)
            if result.ok:
                print(result.value["id"])
            else:
                print(result.error.message)

    """

    key: str | None
    value: T
    kind: ResultKind = ResultKind.OK
    error: ErrorInfo | None = None

    @classmethod
    def success(cls, key: str | None, value: T) -> Self:
        return cls(key=key, value=value)

    @classmethod
    def validation_error(cls, key: str | None, fallback: T, message: str) -> Self:
        return cls(
            key=key,
            value=fallback,
            kind=ResultKind.VALIDATION_ERROR,
            error=ErrorInfo(message),
        )

    @classmethod
    def api_error(
        cls, key: str | None, fallback: T, message: str, error_name: str | None = None
    ) -> Self:
        return cls(
            key=key,
            value=fallback,
            kind=ResultKind.API_ERROR,
            error=ErrorInfo(message, error_name),
        )

    @classmethod
    def unknown_error(cls, key: str | None, fallback: T) -> Self:
        return cls(
            key=key,
            value=fallback,
            kind=ResultKind.UNKNOWN_ERROR,
            error=ErrorInfo(UNKNOWN_ERROR),
        )

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.OK

    def to_dict(self) -> JsonObject:
        """Render the envelope as a plain dict, e.g. ``{"order": {...}, "error": {...}}``."""
        rendered: JsonObject
        if self.key is None:
            rendered = dict(self.value) if isinstance(self.value, dict) else {}
        else:
            rendered = {self.key: self.value}  # type: ignore[dict-item]
        if self.error is not None:
            rendered["error"] = self.error.to_dict()
        return rendered


@dataclass(frozen=True)
class SignableMessage:
    """A typed message ready for signing and its JSON wire form.

    ``message`` holds strict EIP-712 values (ints, bools, bytes, addresses).
    ``payload`` holds the same values as sent to the API, with 128 bit
    integers rendered as decimal strings. ``signature_position`` is the index
    in ``payload`` where the signature is inserted.
    """

    primary_type: str
    message: dict[str, Any]
    payload: JsonObject = field(default_factory=dict)
    signature_position: int | None = None

    def with_signature(self, signature: str) -> JsonObject:
        """Return the wire payload with ``signature`` inserted at its slot."""
        items = list(self.payload.items())
        position = len(items) if self.signature_position is None else self.signature_position
        items.insert(position, ("signature", signature))
        return dict(items)
