"""EIP-712 typed messages accepted by the Citrex order verifier.

Every authenticated action is expressed as one of the primary types in
``EIP712_TYPES`` and signed under the ``ciao`` domain of the active chain.
Builders return a ``SignableMessage`` holding both the strict typed message
and the JSON payload the API expects, so the two can never drift apart.
"""

import logging
import re
from typing import Any

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from web3 import Web3

from citrex_sdk.errors import ValidationError
from citrex_sdk.types import Address, Nonce, OrderId, OrderType, SignableMessage, TimeInForce

log = logging.getLogger(__name__)


# ============================================================================
# SCHEMA
# ============================================================================

EIP712_DOMAIN_NAME: str = "ciao"
EIP712_DOMAIN_VERSION: str = "0.0.0"

EIP712_DOMAIN_TYPE: list[dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

EIP712_TYPES: dict[str, list[dict[str, str]]] = {
    "Order": [
        {"name": "account", "type": "address"},
        {"name": "isBuy", "type": "bool"},
        {"name": "expiration", "type": "uint64"},
        {"name": "nonce", "type": "uint64"},
        {"name": "orderType", "type": "uint8"},
        {"name": "price", "type": "uint128"},
        {"name": "productId", "type": "uint32"},
        {"name": "quantity", "type": "uint128"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "timeInForce", "type": "uint8"},
    ],
    "CancelOrder": [
        {"name": "account", "type": "address"},
        {"name": "orderId", "type": "bytes32"},
        {"name": "productId", "type": "uint32"},
        {"name": "subAccountId", "type": "uint8"},
    ],
    "CancelOrders": [
        {"name": "account", "type": "address"},
        {"name": "productId", "type": "uint32"},
        {"name": "subAccountId", "type": "uint8"},
    ],
    "Withdraw": [
        {"name": "account", "type": "address"},
        {"name": "asset", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
        {"name": "nonce", "type": "uint64"},
        {"name": "quantity", "type": "uint128"},
    ],
    "SignedAuthentication": [
        {"name": "account", "type": "address"},
        {"name": "subAccountId", "type": "uint8"},
    ],
}

ORDER_ID_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def build_domain(chain_id: int, verifying_contract: Address) -> dict[str, Any]:
    """Return the EIP-712 domain for the given chain and verifier contract."""
    return {
        "name": EIP712_DOMAIN_NAME,
        "version": EIP712_DOMAIN_VERSION,
        "chainId": chain_id,
        "verifyingContract": _checksum(verifying_contract),
    }


def typed_data(domain: dict[str, Any], message: SignableMessage) -> dict[str, Any]:
    """Assemble the full EIP-712 document for ``message``."""
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            message.primary_type: EIP712_TYPES[message.primary_type],
        },
        "primaryType": message.primary_type,
        "domain": domain,
        "message": message.message,
    }


def _checksum(address: Address) -> Address:
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid address {address!r}") from e


def _order_id_bytes(order_id: OrderId) -> bytes:
    if not isinstance(order_id, str) or not ORDER_ID_PATTERN.match(order_id):
        raise ValidationError(f"Invalid order id {order_id!r}, expected 0x-prefixed 32 byte hex")
    return bytes.fromhex(order_id[2:])


def _uint(name: str, value: Any, bits: int) -> int:
    maximum = 2**bits - 1
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise ValidationError(
            f"{name} must be an integer between 0 and {maximum}, received {value!r}"
        )
    return value


def _bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean, received {value!r}")
    return value


# ============================================================================
# MESSAGE BUILDERS
# ============================================================================


def build_order_message(
    *,
    account: Address,
    is_buy: bool,
    expiration: int,
    nonce: Nonce,
    order_type: OrderType,
    price: int,
    product_id: int,
    quantity: int,
    sub_account_id: int,
    time_in_force: TimeInForce,
) -> SignableMessage:
    """Build an ``Order`` message from fixed-point price and quantity."""
    _bool("isBuy", is_buy)
    _uint("expiration", expiration, 64)
    _uint("nonce", nonce, 64)
    _uint("price", price, 128)
    _uint("productId", product_id, 32)
    _uint("quantity", quantity, 128)
    message = {
        "account": _checksum(account),
        "isBuy": is_buy,
        "expiration": expiration,
        "nonce": nonce,
        "orderType": order_type.value,
        "price": price,
        "productId": product_id,
        "quantity": quantity,
        "subAccountId": sub_account_id,
        "timeInForce": time_in_force.value,
    }
    payload = {
        "expiration": expiration,
        "nonce": nonce,
        "price": str(price),
        "quantity": str(quantity),
        "account": account,
        "isBuy": is_buy,
        "orderType": order_type.value,
        "productId": product_id,
        "subAccountId": sub_account_id,
        "timeInForce": time_in_force.value,
    }
    return SignableMessage("Order", message, payload, signature_position=4)


def build_cancel_order_message(
    *, account: Address, order_id: OrderId, product_id: int, sub_account_id: int
) -> SignableMessage:
    _uint("productId", product_id, 32)
    message = {
        "account": _checksum(account),
        "orderId": _order_id_bytes(order_id),
        "productId": product_id,
        "subAccountId": sub_account_id,
    }
    payload = {
        "account": account,
        "orderId": order_id,
        "productId": product_id,
        "subAccountId": sub_account_id,
    }
    return SignableMessage("CancelOrder", message, payload)


def build_cancel_orders_message(
    *, account: Address, product_id: int, sub_account_id: int
) -> SignableMessage:
    _uint("productId", product_id, 32)
    message = {
        "account": _checksum(account),
        "productId": product_id,
        "subAccountId": sub_account_id,
    }
    payload = {
        "account": account,
        "productId": product_id,
        "subAccountId": sub_account_id,
    }
    return SignableMessage("CancelOrders", message, payload)


def build_withdraw_message(
    *, account: Address, asset: Address, sub_account_id: int, nonce: Nonce, quantity: int
) -> SignableMessage:
    """Build a ``Withdraw`` message; ``quantity`` is in 6 decimal USDC units."""
    _uint("nonce", nonce, 64)
    _uint("quantity", quantity, 128)
    message = {
        "account": _checksum(account),
        "asset": _checksum(asset),
        "subAccountId": sub_account_id,
        "nonce": nonce,
        "quantity": quantity,
    }
    payload = {
        "account": account,
        "asset": asset,
        "subAccountId": sub_account_id,
        "nonce": nonce,
        "quantity": str(quantity),
    }
    return SignableMessage("Withdraw", message, payload)


def build_authentication_message(
    *, account: Address, sub_account_id: int
) -> SignableMessage:
    """Build the ``SignedAuthentication`` message used by private GET endpoints."""
    message = {"account": _checksum(account), "subAccountId": sub_account_id}
    payload = {"account": account, "subAccountId": sub_account_id}
    return SignableMessage("SignedAuthentication", message, payload)


# ============================================================================
# SIGNER
# ============================================================================


class TypedDataSigner:
    """Signs typed messages with a local private key under a fixed domain."""

    def __init__(self, account: LocalAccount, domain: dict[str, Any]):
        self._account = account
        self._domain = domain

    @property
    def address(self) -> Address:
        return self._account.address

    @property
    def domain(self) -> dict[str, Any]:
        return dict(self._domain)

    def sign(self, message: SignableMessage) -> str:
        """Sign ``message`` and return the 0x-prefixed 65 byte signature.

        Failures are not caught: a message that cannot be signed means the
        client is misconfigured.
        """
        signable = encode_typed_data(full_message=typed_data(self._domain, message))
        signed = self._account.sign_message(signable)
        signature = "0x" + bytes(signed.signature).hex()
        log.debug("Signed %s message: %s", message.primary_type, signature)
        return signature


def recover_signer(
    domain: dict[str, Any], message: SignableMessage, signature: str
) -> Address:
    """Return the address that produced ``signature`` over ``message``."""
    signable = encode_typed_data(full_message=typed_data(domain, message))
    return Account.recover_message(signable, signature=signature)
