"""Chain executor implementation using web3.py's AsyncWeb3."""

import logging
from typing import Any, override

from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractCustomError, ContractLogicError

from citrex_sdk.abi import ERC20_ABI, VAULT_ABI, error_signatures
from citrex_sdk.errors import BaseError, ContractRevertError, TransportError
from citrex_sdk.executors.interface import ChainExecutor
from citrex_sdk.types import Address

log = logging.getLogger(__name__)


def _selector_names(abi: list[dict[str, Any]]) -> dict[str, str]:
    return {
        bytes(Web3.keccak(text=signature))[:4].hex(): name
        for signature, name in error_signatures(abi).items()
    }


_CUSTOM_ERRORS: dict[str, str] = _selector_names(ERC20_ABI)


def decode_revert(error: ContractLogicError) -> ContractRevertError:
    """Turn a web3 revert into a ContractRevertError carrying the error name.

    Custom errors are matched by selector against the ERC-20 errors, which the
    vault bubbles up from token transfers. Other selectors leave the name
    unset. Plain ``require`` reverts are reported as Solidity's builtin ``Error``.
    """
    message = str(error.message or error).replace('"', "'")
    if isinstance(error, ContractCustomError):
        data = str(error.data or error.message or "")
        selector = data.removeprefix("0x")[:8].lower()
        return ContractRevertError(message, _CUSTOM_ERRORS.get(selector))
    return ContractRevertError(message, "Error")


class Web3ChainExecutor(ChainExecutor):
    """Reads and writes the ERC-20 and vault contracts over JSON-RPC."""

    def __init__(self, rpc_url: str, account: LocalAccount, chain_id: int):
        """Initialize the web3 chain executor.

        Args:
            rpc_url: JSON-RPC endpoint of the chain.
            account: Local account used to sign transactions.
            chain_id: Chain id included in every transaction.

        """
        self.w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._account = account
        self._chain_id = chain_id

    @property
    @override
    def address(self) -> Address:
        return self._account.address

    @override
    async def get_allowance(self, token: Address, owner: Address, spender: Address) -> int:
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
        try:
            return await contract.functions.allowance(
                Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
            ).call()
        except ContractLogicError as e:
            raise decode_revert(e) from e
        except Exception as e:
            raise TransportError(f"Failed to read allowance of {owner} on {token}: {e}") from e

    @override
    async def approve(self, token: Address, spender: Address, amount: int) -> str:
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
        function = contract.functions.approve(Web3.to_checksum_address(spender), amount)
        return await self._simulate_and_send(function, "approve")

    @override
    async def deposit(
        self,
        vault: Address,
        account: Address,
        sub_account_id: int,
        amount: int,
        asset: Address,
    ) -> str:
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(vault), abi=VAULT_ABI)
        function = contract.functions.deposit(
            Web3.to_checksum_address(account),
            sub_account_id,
            amount,
            Web3.to_checksum_address(asset),
        )
        return await self._simulate_and_send(function, "deposit")

    @override
    async def get_transaction_receipt(self, transaction_hash: str) -> dict[str, Any]:
        receipt = await self.w3.eth.get_transaction_receipt(transaction_hash)  # type: ignore[arg-type]
        return dict(receipt)

    async def _simulate_and_send(self, function: Any, name: str) -> str:
        """Dry-run ``function`` with eth_call, then sign and broadcast it."""
        try:
            await function.call({"from": self.address})
            transaction = await function.build_transaction(
                {
                    "from": self.address,
                    "chainId": self._chain_id,
                    "nonce": await self.w3.eth.get_transaction_count(self.address, "pending"),
                }
            )
            signed = self._account.sign_transaction(transaction)
            transaction_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise decode_revert(e) from e
        except BaseError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to submit {name} transaction: {e}") from e

        transaction_hash_hex = Web3.to_hex(transaction_hash)
        log.info("Submitted %s transaction %s", name, transaction_hash_hex)
        return transaction_hash_hex
