"""Environment configuration setup utilities.

This module loads environment variables from .env files and turns them into
the private key and ClientConfig a CitrexApiClient is built from.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from citrex_sdk.config import ClientConfig
from citrex_sdk.errors import ValidationError
from citrex_sdk.types import Environment

log = logging.getLogger(__name__)


def _required(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        raise ValidationError(f"{name} is not set")
    return value


def setup_environment() -> tuple[str, ClientConfig]:
    """Load the signing key and client configuration from the environment.

    Loads environment variables from a .env file if present, otherwise falls
    back to system environment variables. Reads environment-specific variables
    based on the ENVIRONMENT variable (defaults to 'testnet'):

    - ``CITREX_PRIVATE_KEY_<ENV>`` (required)
    - ``ORDER_DISPATCH_<ENV>_ADDRESS`` (required)
    - ``CIAO_<ENV>_ADDRESS`` (required)
    - ``CITREX_RPC_<ENV>``
    - ``CITREX_SUB_ACCOUNT_ID_<ENV>`` (default 1)
    - ``CITREX_DEBUG``

    Returns:
        Tuple:
            - private_key: Hex private key used for signing
            - config: ClientConfig for the selected environment

    Raises:
        ValidationError: If a required variable is missing or malformed

    """
    env_file_path = Path(".env")
    if env_file_path.exists():
        log.info("Loading environment variables from .env file")
        load_dotenv(env_file_path)
    else:
        log.info(".env file not found. Falling back to Bash Environment variables.")

    environment_name = os.getenv("ENVIRONMENT", "testnet").lower()
    try:
        environment = Environment(environment_name)
    except ValueError as e:
        raise ValidationError(f"Invalid ENVIRONMENT={environment_name!r}") from e

    log.info("Using %s environment", environment.value)
    suffix = environment.value.upper()

    try:
        sub_account_id = int(os.environ.get(f"CITREX_SUB_ACCOUNT_ID_{suffix}", "1"))
    except ValueError as e:
        raise ValidationError(f"Invalid CITREX_SUB_ACCOUNT_ID_{suffix}: {e}") from e

    private_key = _required(f"CITREX_PRIVATE_KEY_{suffix}")
    config = ClientConfig(
        verifier_address=_required(f"ORDER_DISPATCH_{suffix}_ADDRESS"),
        vault_address=_required(f"CIAO_{suffix}_ADDRESS"),
        environment=environment,
        rpc=os.environ.get(f"CITREX_RPC_{suffix}") or None,
        sub_account_id=sub_account_id,
        debug=os.environ.get("CITREX_DEBUG", "").lower() in ("1", "true", "yes"),
    )
    return private_key, config
