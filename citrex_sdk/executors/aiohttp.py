"""HTTP executor implementation using aiohttp."""

import asyncio
from typing import override

import aiohttp

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


class AiohttpHttpExecutor(HttpExecutor):
    """HTTP executor implementation using aiohttp.

    The ClientSession is created lazily on the first request, inside the
    running event loop.
    """

    @override
    def __init__(self, api_url: str = TESTNET_API_URL):
        self.api_url = api_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    @override
    async def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send a request to the API.

        Raises:
            SerializationError: If the request body cannot be encoded.
            TransportTimeoutError: If the request times out.
            HttpConnectionError: If the connection fails or is lost.
            TransportError: If any other transport-level error occurs.
            DeserializationError: If the response is not valid JSON.

        """
        url = f"{self.api_url}/{path}"
        request_body = serialize_request(json)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Citrex-Client": get_citrex_client(),
        }
        try:
            if self._session is None:
                self._session = aiohttp.ClientSession()

            async with self._session.request(
                method, url, data=request_body, headers=headers
            ) as response:
                status = response.status
                content = await response.read()
                response_headers = dict(response.headers)
        except BaseError:
            raise
        except asyncio.TimeoutError as e:
            raise TransportTimeoutError(
                f"{method} request to {url} timed out", timeout_seconds=None
            ) from e
        except aiohttp.ClientConnectionError as e:
            raise HttpConnectionError(
                f"Failed to connect to {url}: {e}", url=url
            ) from e
        except Exception as e:
            raise TransportError(f"{method} request to {url} failed: {e}") from e
        return HttpResponse(
            status=status,
            body=deserialize_response(content, url),
            headers=response_headers,
        )

    @override
    async def close(self) -> None:
        """Close the executor and its underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None
