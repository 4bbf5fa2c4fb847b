"""Python SDK for the Citrex perpetual futures exchange."""

from importlib.metadata import PackageNotFoundError, version

from citrex_sdk.api import CitrexApiClient
from citrex_sdk.config import ClientConfig
from citrex_sdk.errors import (
    BaseError,
    ContractRevertError,
    ExchangeError,
    TransportError,
    ValidationError,
)
from citrex_sdk.helpers import print_data
from citrex_sdk.types import (
    CancelOrderArgs,
    Environment,
    Interval,
    KlineOptionalArgs,
    MarginAsset,
    OrderArgs,
    OrderType,
    ReplacementOrderArgs,
    Result,
    ResultKind,
    TimeInForce,
)

try:
    __version__ = version("citrex-sdk")
except PackageNotFoundError:
    __version__ = "unknown"


def get_version() -> str:
    """Return the installed version of the SDK."""
    return __version__


__all__ = [
    "CitrexApiClient",
    "ClientConfig",
    "BaseError",
    "ExchangeError",
    "TransportError",
    "ValidationError",
    "ContractRevertError",
    "CancelOrderArgs",
    "Environment",
    "Interval",
    "KlineOptionalArgs",
    "MarginAsset",
    "OrderArgs",
    "OrderType",
    "ReplacementOrderArgs",
    "Result",
    "ResultKind",
    "TimeInForce",
    "get_version",
    "print_data",
]
