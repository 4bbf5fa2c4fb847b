"""Transaction confirmation utilities."""

import asyncio
import logging
from typing import Any

from citrex_sdk.errors import TransactionWaitError
from citrex_sdk.executors.interface import ChainExecutor

log = logging.getLogger(__name__)


async def wait_for_transaction(
    executor: ChainExecutor,
    transaction_hash: str,
    poll_interval: float = 1,
    timeout: float | None = None,
    cancel_event: asyncio.Event | None = None,
) -> dict[str, Any]:
    """Poll for a transaction receipt until it is available.

    Any error while fetching the receipt (typically "transaction not found"
    while it is pending) is treated as not-yet-mined and retried after
    ``poll_interval`` seconds.

    Args:
        executor: Chain executor used to fetch the receipt
        transaction_hash: Hash of the submitted transaction
        poll_interval: Delay between attempts in seconds (default: 1)
        timeout: Give up after this many seconds (default: wait forever)
        cancel_event: Give up as soon as this event is set

    Returns:
        The transaction receipt

    Raises:
        TransactionWaitError: If the timeout elapses or the wait is cancelled

    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout

    attempt = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise TransactionWaitError("Stopped waiting for receipt", transaction_hash)
        try:
            receipt = await executor.get_transaction_receipt(transaction_hash)
            log.debug("Receipt for %s received after %d retries", transaction_hash, attempt)
            return receipt
        except Exception as e:
            attempt += 1
            log.debug(
                "Receipt for %s not available (attempt %d): %s",
                transaction_hash,
                attempt,
                str(e),
            )

        delay = poll_interval
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise TransactionWaitError(
                    f"Timed out after {timeout}s waiting for receipt", transaction_hash
                )
            delay = min(delay, remaining)

        if cancel_event is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(cancel_event.wait(), delay)
            except TimeoutError:
                pass
