"""Per-environment constants and the client configuration."""

from dataclasses import dataclass

from citrex_sdk.errors import ValidationError
from citrex_sdk.types import Address, Environment, MarginAsset

# ============================================================================
# CONSTANTS
# ============================================================================

MAINNET_API_URL: str = "https://api.citrex.markets/v1"
TESTNET_API_URL: str = "https://api.staging.citrex.markets/v1"

API_URLS: dict[Environment, str] = {
    Environment.MAINNET: MAINNET_API_URL,
    Environment.TESTNET: TESTNET_API_URL,
}


@dataclass(frozen=True)
class Chain:
    """EVM chain hosting the vault and order verifier."""

    id: int
    name: str
    rpc_url: str


SEI_MAINNET = Chain(id=1329, name="Sei Network", rpc_url="https://evm-rpc.sei-apis.com")
SEI_TESTNET = Chain(
    id=1328, name="Sei Testnet", rpc_url="https://evm-rpc-testnet.sei-apis.com"
)

CHAINS: dict[Environment, Chain] = {
    Environment.MAINNET: SEI_MAINNET,
    Environment.TESTNET: SEI_TESTNET,
}

MARGIN_ASSETS: dict[Environment, dict[MarginAsset, Address]] = {
    Environment.MAINNET: {
        MarginAsset.USDC: "0xaf88d065e77c8cc2239327c5edb3a432268e5831",
    },
    Environment.TESTNET: {
        MarginAsset.USDC: "0xb8be1401e65dc08bfb8f832fc1a27a16ca821b05",
    },
}

MAX_SUB_ACCOUNT_ID: int = 255  # uint8 in every typed message


def validate_sub_account_id(sub_account_id: int) -> int:
    """Return ``sub_account_id`` if it fits the uint8 field it is signed as."""
    if isinstance(sub_account_id, bool) or not isinstance(sub_account_id, int):
        raise ValidationError from TypeError(
            f"Unexpected type for sub_account_id {type(sub_account_id)}"
        )
    if not 0 <= sub_account_id <= MAX_SUB_ACCOUNT_ID:
        raise ValidationError(
            f"Invalid sub_account_id={sub_account_id}, must be between 0 and {MAX_SUB_ACCOUNT_ID}"
        )
    return sub_account_id


# ============================================================================
# CLIENT CONFIGURATION
# ============================================================================


@dataclass
class ClientConfig:
    """Settings a CitrexApiClient is constructed with.

    Attributes:
        verifier_address: OrderDispatch contract used as the EIP-712 verifying contract
        vault_address: CIAO vault contract receiving deposits
        environment: Deployment to trade against (default testnet)
        rpc: JSON-RPC url for on-chain calls (default the chain's public RPC)
        sub_account_id: Initial sub-account (default 1)
        debug: Log at DEBUG level when True
        api_url: REST base url (default per environment)

    """

    verifier_address: Address
    vault_address: Address
    environment: Environment = Environment.TESTNET
    rpc: str | None = None
    sub_account_id: int = 1
    debug: bool = False
    api_url: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.environment, Environment):
            try:
                self.environment = Environment(str(self.environment).lower())
            except ValueError as e:
                raise ValidationError(f"Unknown environment {self.environment!r}") from e
        validate_sub_account_id(self.sub_account_id)

    @property
    def chain(self) -> Chain:
        return CHAINS[self.environment]

    @property
    def rpc_url(self) -> str:
        return self.rpc if self.rpc is not None else self.chain.rpc_url

    @property
    def resolved_api_url(self) -> str:
        return self.api_url if self.api_url is not None else API_URLS[self.environment]

    @property
    def margin_assets(self) -> dict[MarginAsset, Address]:
        return MARGIN_ASSETS[self.environment]
