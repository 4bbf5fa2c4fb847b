"""Default executor configurations.

This module defines the default HTTP and chain executor implementations
used by the Citrex SDK when no custom executor is provided.
"""

from typing import Type

from citrex_sdk.executors.httpx import HttpxHttpExecutor
from citrex_sdk.executors.interface import ChainExecutor, HttpExecutor
from citrex_sdk.executors.web3 import Web3ChainExecutor

DEFAULT_HTTP_EXECUTOR: Type[HttpExecutor] = HttpxHttpExecutor
DEFAULT_CHAIN_EXECUTOR: Type[ChainExecutor] = Web3ChainExecutor
