import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Generator

import orjson
import pytest

from citrex_sdk.api import CitrexApiClient
from citrex_sdk.config import ClientConfig
from citrex_sdk.signing import build_domain
from citrex_sdk.types import Environment
from tests.mock_executors import (
    MockChainExecutor,
    MockHttpExecutor,
    MockOutputNotExhausted,
)

DATA_DIR = Path(__file__).parent.joinpath("data")

log = logging.getLogger(__name__)

# well known development key, never funded on a real network
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

VERIFIER_ADDRESS = "0x27809a3Bd3cf44d855f1BE668bFD16D34bcE157C"
VAULT_ADDRESS = "0x0F571400ef7D2aEc68b29e58be3adCE1Bb27f33d"
TESTNET_USDC = "0xb8be1401e65dc08bfb8f832fc1a27a16ca821b05"

# 2024-03-07T16:42:40Z
FROZEN_TIME_MS = 1709829760000
FROZEN_NONCE = FROZEN_TIME_MS * 1000
FROZEN_EXPIRATION = FROZEN_TIME_MS + 2_592_000_000

ORDER_ID = "0x3505c6219b1f51cf216e432b153f8637c1fa9342520bd7c780bd80dafe0eed94"


async def wait_for_predicate(
    condition: Callable[[], bool], timeout: float, poll_interval: float = 0.01
) -> None:
    """
    Wait for a condition to become true, polling at regular intervals.

    Args:
        condition: A callable that returns True when the condition is met
        timeout: Maximum time to wait in seconds
        poll_interval: Time between condition checks in seconds (default: 0.01)

    Raises:
        TimeoutError: If the condition doesn't become true within the timeout
    """
    start_time = asyncio.get_event_loop().time()
    end_time = start_time + timeout

    while True:
        if condition():
            return

        current_time = asyncio.get_event_loop().time()
        if current_time >= end_time:
            raise TimeoutError(f"Condition not met within {timeout}s timeout")

        await asyncio.sleep(poll_interval)


def make_config(**overrides: Any) -> ClientConfig:
    options: dict[str, Any] = {
        "verifier_address": VERIFIER_ADDRESS,
        "vault_address": VAULT_ADDRESS,
        "environment": Environment.TESTNET,
    }
    options.update(overrides)
    return ClientConfig(**options)


def make_domain() -> dict[str, Any]:
    return build_domain(1328, VERIFIER_ADDRESS)


@pytest.fixture(autouse=True)
def restore_sdk_logger() -> Generator[None, None, None]:
    """Drop call log handlers of clients a test never closed."""
    logger = logging.getLogger("citrex_sdk")
    level, handlers = logger.level, list(logger.handlers)

    yield

    logger.setLevel(level)
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)


@pytest.fixture
def frozen_time(monkeypatch) -> int:
    """Pin the wall clock used for nonces and expirations."""
    monkeypatch.setattr(
        "citrex_sdk.helpers.time_ns", lambda: FROZEN_TIME_MS * 1_000_000
    )
    return FROZEN_TIME_MS


@pytest.fixture
def mock_http_client() -> Generator[
    tuple[CitrexApiClient, MockHttpExecutor], None, None
]:
    mock_http = MockHttpExecutor()
    client = CitrexApiClient(
        PRIVATE_KEY,
        make_config(),
        # replace real network requests with our mock
        executor=mock_http,
    )

    yield (client, mock_http)

    if len(mock_http.staged_outputs) > 0:
        raise MockOutputNotExhausted(mock_http.staged_outputs)


@pytest.fixture
def mock_chain_client() -> Generator[
    tuple[CitrexApiClient, MockHttpExecutor, MockChainExecutor], None, None
]:
    mock_http = MockHttpExecutor()
    mock_chain = MockChainExecutor(ADDRESS)
    client = CitrexApiClient(
        PRIVATE_KEY,
        make_config(),
        executor=mock_http,
        chain_executor=mock_chain,
    )

    yield (client, mock_http, mock_chain)

    if len(mock_chain.staged_outputs) > 0:
        raise MockOutputNotExhausted(mock_chain.staged_outputs)


@lru_cache(maxsize=1)
def data_files() -> list[Path]:
    return list(DATA_DIR.iterdir())


@lru_cache(maxsize=8)
def json_data_files(name: str) -> list[Path]:
    return list(
        sorted(
            path
            for path in data_files()
            if path.match(f"*/{name}.*.json", case_sensitive=True)
        )
    )


def load_json(name: str, case: int | None = None) -> Any:
    case_part = f"{case}." if case else ""
    path = Path(__file__).parent / "data" / f"{name}.{case_part}json"
    with open(path, "rb") as fh:
        return orjson.loads(fh.read())


def load_json_all_cases(name: str) -> list[tuple[Any, Path]]:
    """Load all json payloads for a given base name (case0, case1, ...)."""
    results = []
    for path in json_data_files(name):
        with open(path, "rb") as fh:
            payload = orjson.loads(fh.read())
            results.append((payload, path))
    return results
