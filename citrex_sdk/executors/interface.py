"""Abstract interfaces for HTTP and chain executors.

This module defines the abstract base classes that all HTTP and on-chain
executor implementations must follow, enabling pluggable transport layers.
"""

from abc import ABC, abstractmethod
from typing import Any

from citrex_sdk.types import Address, Json


class HttpResponse:
    """Container for HTTP response data.

    Encapsulates the status code, body, and headers from an HTTP response.
    """

    status: int
    body: Json
    headers: dict[str, str] | None

    __slots__ = ("status", "body", "headers")

    def __init__(
        self,
        *,
        status: int,
        body: Json | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize an HTTP response object.

        Args:
            status: The HTTP status code of the response.
            body: The JSON response body (object or array). Defaults to an empty dict if None.
            headers: Optional HTTP response headers as key-value pairs.

        """
        self.status = status
        self.body = body if body is not None else {}
        self.headers = headers


class HttpExecutor(ABC):
    """Abstract base class for HTTP request executors.

    Paths are relative to ``api_url`` and may carry a query string.
    """

    api_url: str

    @abstractmethod
    def __init__(self, api_url: str):
        """Initialize the HTTP executor.

        Args:
            api_url: The base API URL for making requests.

        """
        ...

    @abstractmethod
    async def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send an HTTP request.

        Args:
            method: The HTTP method (e.g., 'GET', 'POST', 'DELETE').
            path: The URL path for the request, without a leading slash.
            json: Optional JSON payload to send with the request.

        Returns:
            An HttpResponse object containing the status, body, and headers.

        """
        ...

    async def close(self) -> None:
        """Release any pooled connections."""
        return None


class ChainExecutor(ABC):
    """Abstract base class for on-chain contract executors.

    Write methods simulate the call first and raise ContractRevertError when it
    would revert, then sign and submit the transaction.
    """

    @property
    @abstractmethod
    def address(self) -> Address:
        """Address transactions are sent from."""
        ...

    @abstractmethod
    async def get_allowance(self, token: Address, owner: Address, spender: Address) -> int:
        """Read ``token.allowance(owner, spender)``."""
        ...

    @abstractmethod
    async def approve(self, token: Address, spender: Address, amount: int) -> str:
        """Submit ``token.approve(spender, amount)`` and return the transaction hash."""
        ...

    @abstractmethod
    async def deposit(
        self,
        vault: Address,
        account: Address,
        sub_account_id: int,
        amount: int,
        asset: Address,
    ) -> str:
        """Submit ``vault.deposit(account, subAccountId, amount, asset)`` and return the transaction hash."""
        ...

    @abstractmethod
    async def get_transaction_receipt(self, transaction_hash: str) -> dict[str, Any]:
        """Return the receipt of a mined transaction.

        Raises:
            Exception: While the transaction is still pending.

        """
        ...
