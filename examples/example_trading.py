"""
Trading Example

This example places, replaces and cancels orders, lists account data and
shows how capital moves in and out of the margin vault.

Deposits and withdrawals move real funds and are commented out.

Environment Variables Required:
- ENVIRONMENT: mainnet or testnet (default: testnet)
- CITREX_PRIVATE_KEY_<ENV>: Private key of the trading account
- ORDER_DISPATCH_<ENV>_ADDRESS: Order verifier contract
- CIAO_<ENV>_ADDRESS: Margin vault contract
- CITREX_SUB_ACCOUNT_ID_<ENV>: Sub-account to trade from (default: 1)
"""

import asyncio

from citrex_sdk import (
    CancelOrderArgs,
    CitrexApiClient,
    OrderArgs,
    OrderType,
    ReplacementOrderArgs,
    TimeInForce,
    print_data,
)
from citrex_sdk.env_setup import setup_environment

SYMBOL = "ethperp"


async def example_trading() -> None:
    """Demonstrate signed account and trading endpoints."""

    print("=" * 70)
    print("Citrex Trading Example")
    print("=" * 70)

    private_key, config = setup_environment()

    async with CitrexApiClient(private_key, config) as citrex:
        print(f"[Setup] Account: {citrex.address}")
        print(f"[Setup] Sub-account: {citrex.sub_account_id}\n")

        # ==================================================================
        # PART 1: ACCOUNT INFORMATION
        # ==================================================================
        print("=" * 70)
        print("PART 1: ACCOUNT INFORMATION")
        print("=" * 70)

        print("\n[1.1] Balances")
        print_data(await citrex.list_balances())

        print("\n[1.2] Account Health")
        print_data(await citrex.get_account_health())

        print("\n[1.3] Positions")
        print_data(await citrex.list_positions(SYMBOL))

        print("\n[1.4] Trade History")
        print_data(await citrex.get_trade_history(SYMBOL, quantity=5))

        # ==================================================================
        # PART 2: ORDERS
        # ==================================================================
        print("\n" + "=" * 70)
        print("PART 2: ORDERS")
        print("=" * 70)

        product = await citrex.get_product(SYMBOL)
        if not product.ok:
            print_data(product)
            return
        product_id = product.value["id"]
        increment = int(product.value["increment"])

        tickers = await citrex.get_tickers(SYMBOL)
        mark_price = tickers.value[SYMBOL]["markPrice"]
        print(f"\n[Market] {SYMBOL} mark price {mark_price}")

        # Market orders are priced from a reference price plus slippage
        print("\n[2.1] Market buy")
        market = await citrex.place_order(
            True, mark_price, product_id, "0.01", price_increment=increment
        )
        print_data(market)

        # Resting orders well away from the market
        print("\n[2.2] Two resting limit orders")
        limits = await citrex.place_orders(
            [
                OrderArgs(
                    True,
                    "1000",
                    product_id,
                    "0.01",
                    order_type=OrderType.LIMIT,
                    time_in_force=TimeInForce.GTC,
                ),
                OrderArgs(
                    True,
                    "1001",
                    product_id,
                    "0.01",
                    order_type=OrderType.LIMIT,
                    time_in_force=TimeInForce.GTC,
                ),
            ]
        )
        for result in limits:
            print_data(result)

        placed = [result.value["id"] for result in limits if result.ok]
        if placed:
            print("\n[2.3] Cancel and replace the first order")
            replaced = await citrex.cancel_and_replace_order(
                placed[0],
                ReplacementOrderArgs(True, "999", product_id, "0.02"),
            )
            print_data(replaced)
            if replaced.ok:
                placed[0] = replaced.value["id"]

            print("\n[2.4] Cancel the resting orders")
            cancelled = await citrex.cancel_orders(
                [CancelOrderArgs(order_id, product_id) for order_id in placed]
            )
            for result in cancelled:
                print_data(result)

        print("\n[2.5] Open orders left on the book")
        print_data(await citrex.list_open_orders(SYMBOL))
        print_data(await citrex.cancel_open_orders_for_product(product_id))

        # ==================================================================
        # PART 3: CAPITAL
        # ==================================================================
        print("\n" + "=" * 70)
        print("PART 3: CAPITAL")
        print("=" * 70)

        # print_data(await citrex.deposit(100, timeout=120))
        # print_data(await citrex.withdraw(100))
        print("\n[3.1] Deposit and withdraw calls are commented out for safety")


if __name__ == "__main__":
    asyncio.run(example_trading())
