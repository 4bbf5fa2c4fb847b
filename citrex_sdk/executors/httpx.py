"""HTTP executor implementation using httpx.

This module provides async HTTP request handling using the httpx library.
"""

from typing import override

import httpx

from citrex_sdk.config import TESTNET_API_URL
from citrex_sdk.errors import (
    BaseError,
    HttpConnectionError,
    TransportError,
    TransportTimeoutError,
)
from citrex_sdk.executors.interface import HttpExecutor, HttpResponse
from citrex_sdk.helpers import (
    deserialize_response,
    get_citrex_client,
    serialize_request,
)
from citrex_sdk.types import Json


class HttpxHttpExecutor(HttpExecutor):
    """HTTP executor implementation using httpx.AsyncClient."""

    @override
    def __init__(
        self,
        api_url: str = TESTNET_API_URL,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the HTTPX HTTP executor.

        Args:
            api_url: The base URL for the Citrex API. Defaults to testnet.
            client: Optional preconfigured httpx.AsyncClient (timeouts, proxies, transports).

        """
        self.api_url = api_url.rstrip("/")
        self.client = client if client is not None else httpx.AsyncClient()

    @override
    async def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send a request to the API.

        Args:
            method: The HTTP method to use (e.g., 'GET', 'POST', 'DELETE').
            path: The API endpoint path to request (will be appended to api_url).
            json: Optional JSON data to include in the request body. Defaults to None.

        Returns:
            HttpResponse containing the status code and deserialized response body.

        Raises:
            SerializationError: If the request body cannot be encoded.
            TransportTimeoutError: If the request times out.
            HttpConnectionError: If there is a connection or network error.
            TransportError: If any other transport-level error occurs.
            DeserializationError: If the response is not valid JSON.

        """
        url = f"{self.api_url}/{path}"
        request_body = serialize_request(json)
        try:
            headers = {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Citrex-Client": get_citrex_client(),
            }

            response = await self.client.request(
                method, url, headers=headers, content=request_body
            )

        except BaseError:
            raise
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"{method} request to {url} timed out", timeout_seconds=None
            ) from e
        except httpx.ConnectError as e:
            raise HttpConnectionError(f"Failed to connect to {url}", url=url) from e
        except httpx.NetworkError as e:
            raise HttpConnectionError(
                f"Network error during {method} request to {url}", url=url
            ) from e
        except Exception as e:
            raise TransportError(f"{method} request to {url} failed: {e}") from e
        return HttpResponse(
            status=response.status_code,
            body=deserialize_response(response.content, url),
            headers=dict(response.headers),
        )

    @override
    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self.client.aclose()
