"""
Public Market Data Example

This example demonstrates the Citrex endpoints that need no signature:
products, tickers, order book depth, klines, server time and margin
requirements. A private key is still loaded because every client owns an
account, but nothing is signed or sent on-chain.

Environment Variables Required:
- CITREX_PRIVATE_KEY_<ENV>: Private key of the trading account
- ORDER_DISPATCH_<ENV>_ADDRESS: Order verifier contract
- CIAO_<ENV>_ADDRESS: Margin vault contract
"""

import asyncio

from citrex_sdk import (
    CitrexApiClient,
    Interval,
    KlineOptionalArgs,
    get_version,
    print_data,
)
from citrex_sdk.env_setup import setup_environment


async def example_public_api() -> None:
    """Walk through every market data endpoint."""

    print("=" * 70)
    print("Citrex Public API Example")
    print("=" * 70)
    print(f"\n[Info] Citrex Python SDK Version: {get_version()}\n")

    private_key, config = setup_environment()

    async with CitrexApiClient(private_key, config) as citrex:
        print(f"[Setup] Environment: {citrex.environment.value}")
        print(f"[Setup] Chain: {citrex.chain.name} ({citrex.chain.id})\n")

        # ==================================================================
        # PRODUCTS
        # ==================================================================
        print("=" * 70)
        print("1. PRODUCTS")
        print("=" * 70)

        products = await citrex.get_products()
        for product in products.value:
            print(f"  {product['symbol']:<10} id={product['id']}")

        eth = await citrex.get_product("ethperp")
        print_data(eth)

        # ==================================================================
        # MARKET DATA
        # ==================================================================
        print("\n" + "=" * 70)
        print("2. MARKET DATA")
        print("=" * 70)

        print("\n[Server Time]")
        print_data(await citrex.get_server_time())

        print("\n[Tickers]")
        tickers = await citrex.get_tickers("ethperp")
        print_data(tickers)

        print("\n[Order Book]")
        order_book = await citrex.get_order_book("ethperp", limit=10)
        print(f"  Best ask: {order_book.value['asks'][:1]}")
        print(f"  Best bid: {order_book.value['bids'][:1]}")

        print("\n[Klines]")
        klines = await citrex.get_klines(
            "ethperp", KlineOptionalArgs(interval=Interval.ONE_HOUR, limit=5)
        )
        print_data(klines)

        print("\n[Margin Requirement]")
        margin = await citrex.calculate_margin_requirement(True, 3450, 1002, "0.1")
        print_data(margin)


if __name__ == "__main__":
    asyncio.run(example_public_api())
