from citrex_sdk.executors.aiohttp import AiohttpHttpExecutor
from citrex_sdk.executors.defaults import DEFAULT_CHAIN_EXECUTOR, DEFAULT_HTTP_EXECUTOR
from citrex_sdk.executors.httpx import HttpxHttpExecutor
from citrex_sdk.executors.interface import ChainExecutor, HttpExecutor, HttpResponse
from citrex_sdk.executors.web3 import Web3ChainExecutor

__all__ = [
    "HttpExecutor",
    "HttpResponse",
    "HttpxHttpExecutor",
    "AiohttpHttpExecutor",
    "ChainExecutor",
    "Web3ChainExecutor",
    "DEFAULT_HTTP_EXECUTOR",
    "DEFAULT_CHAIN_EXECUTOR",
]
