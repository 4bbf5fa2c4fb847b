"""API client for the Citrex exchange.

This module provides the main CitrexApiClient class for interacting with the
Citrex REST API and margin vault, including market data queries, account data,
order management, deposits and withdrawals.

Every public operation returns a ``Result``. Validation failures, API errors and
transport failures never raise; a typed message that cannot be signed does.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Callable, TypeVar
from urllib.parse import quote, urlencode

from eth_account import Account
from eth_account.signers.local import LocalAccount

from citrex_sdk.config import Chain, ClientConfig, validate_sub_account_id
from citrex_sdk.connection import wait_for_transaction
from citrex_sdk.errors import (
    BadGateway,
    BadHttpStatus,
    BadRequest,
    ContractRevertError,
    DeserializationError,
    InternalServerError,
    NotFound,
    RateLimited,
    ServiceUnavailable,
    Unauthorized,
    ValidationError,
)
from citrex_sdk.executors import (
    DEFAULT_CHAIN_EXECUTOR,
    DEFAULT_HTTP_EXECUTOR,
    ChainExecutor,
    HttpExecutor,
)
from citrex_sdk.executors.interface import HttpResponse
from citrex_sdk.helpers import (
    CallLogHandler,
    adjust_price_for_slippage,
    current_timestamp_ms,
    default_expiration,
    extract_api_error,
    NonceGenerator,
    to_fixed6,
    to_fixed18,
    without_error_field,
)
from citrex_sdk.signing import (
    TypedDataSigner,
    build_authentication_message,
    build_cancel_order_message,
    build_cancel_orders_message,
    build_domain,
    build_order_message,
    build_withdraw_message,
)
from citrex_sdk.types import (
    Address,
    CancelOrderArgs,
    CitrexNumericInput,
    Environment,
    Json,
    JsonArray,
    JsonObject,
    JsonValue,
    KlineOptionalArgs,
    MarginAsset,
    Nonce,
    OrderArgs,
    OrderId,
    OrderType,
    ReplacementOrderArgs,
    Result,
    SignableMessage,
    TimeInForce,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

REFERRAL_CODE: str = "kickflip"
KLINE_LIMIT_MAX: int = 1000
ORDER_BOOK_LIMITS: tuple[int, ...] = (5, 10, 20)


def raise_response_errors(response: HttpResponse) -> None:
    """Check HTTP response status and raise appropriate errors.

    Only reached for bodies without a structured ``error`` field; those are
    reported as API errors before the status is looked at.

    Args:
        response: The HTTP response to validate

    Raises:
        BadRequest: For 400 status codes
        Unauthorized: For 401 status codes
        NotFound: For 404 status codes
        RateLimited: For 429 status codes
        BadHttpStatus: For other 4XX and unexpected status codes
        InternalServerError: For 500 and other 5XX status codes
        BadGateway: For 502 status codes
        ServiceUnavailable: For 503 status codes

    """
    status = response.status

    if 200 <= status < 300:
        return

    error_message = str(response.body) if response.body else "<no error message>"

    if status == 400:
        raise BadRequest(status, f"Bad request: {error_message}")

    if status == 401:
        raise Unauthorized(status, f"Unauthorized: {error_message}")

    if status == 404:
        raise NotFound(status, f"Not found: {error_message}")

    if status == 429:
        raise RateLimited(status, f"Rate limit exceeded: {error_message}")

    if 400 <= status < 500:
        raise BadHttpStatus(status, f"Client error ({status}): {error_message}")

    if status == 502:
        raise BadGateway(status, f"Bad gateway: {error_message}")

    if status == 503:
        raise ServiceUnavailable(status, f"Service unavailable: {error_message}")

    if 500 <= status < 600:
        raise InternalServerError(status, f"Server error ({status}): {error_message}")

    raise BadHttpStatus(status, f"Unexpected status code ({status}): {error_message}")


def expect_list(body: JsonValue) -> JsonArray:
    """Return ``body`` if the endpoint answered with an array."""
    if not isinstance(body, list):
        raise DeserializationError(f"Expected a JSON array, received {body!r}")
    return body


class CitrexApiClient:
    """Citrex API client for trading operations.

    Examples:
        .. code-block:: python

            import asyncio

            from citrex_sdk import CitrexApiClient, ClientConfig, OrderType
            from citrex_sdk.env_setup import setup_environment


            async def main() -> None:
                private_key, config = setup_environment()
                async with CitrexApiClient(private_key, config) as client:
                    product = await client.get_product("ethperp")
                    result = await client.place_order(
                        is_buy=True,
                        price=3450,
                        product_id=1002,
                        quantity="0.001",
                        price_increment=int(product.value["increment"]),
                    )
                    print(result.to_dict())

            asyncio.run(main())

    """

    _account: LocalAccount
    _signer: TypedDataSigner
    _http_executor: HttpExecutor
    _chain_executor: ChainExecutor | None

    def __init__(
        self,
        private_key: str,
        config: ClientConfig,
        executor: HttpExecutor | None = None,
        chain_executor: ChainExecutor | None = None,
    ):
        """Initialize the Citrex API client.

        On mainnet a referral registration is sent once, in the background.

        Args:
            private_key: Hex private key (with or without 0x prefix) used for signing
            config: Client configuration, see ClientConfig
            executor: Custom HTTP executor (optional, uses httpx if not provided)
            chain_executor: Custom chain executor (optional, uses web3 if not provided)

        Raises:
            ValidationError: If the private key or a configured address is invalid

        """
        self._config = config
        self._sdk_logger = logging.getLogger("citrex_sdk")
        self._log_handler = CallLogHandler(logging.DEBUG if config.debug else logging.INFO)
        if self._sdk_logger.getEffectiveLevel() > self._log_handler.level:
            self._sdk_logger.setLevel(self._log_handler.level)
        self._sdk_logger.addHandler(self._log_handler)
        if config.debug:
            log.info("Debug mode enabled")

        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            self._sdk_logger.removeHandler(self._log_handler)
            raise ValidationError("Invalid private key") from e

        self._signer = TypedDataSigner(
            self._account, build_domain(config.chain.id, config.verifier_address)
        )
        self._sub_account_id = config.sub_account_id
        self._nonces = NonceGenerator()

        self._http_executor = (
            executor
            if executor is not None
            else DEFAULT_HTTP_EXECUTOR(api_url=config.resolved_api_url)
        )
        self._chain_executor = chain_executor

        self._background_tasks: set[asyncio.Task[None]] = set()
        self._referral_pending = config.environment is Environment.MAINNET
        if self._referral_pending:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                log.debug("No running event loop, referral deferred to first request")
            else:
                self.__schedule_referral()

    async def __aenter__(self) -> "CitrexApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Wait for background calls, release the HTTP executor and stop collecting logs."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        await self._http_executor.close()
        self._sdk_logger.removeHandler(self._log_handler)

    @property
    def account(self) -> LocalAccount:
        """Local account holding the signing key."""
        return self._account

    @property
    def address(self) -> Address:
        """Checksummed address of the signing account."""
        return self._account.address

    @property
    def logs(self) -> list[dict[str, str]]:
        """SDK log entries recorded since construction.

        INFO and above are always kept; DEBUG entries only in debug mode.
        """
        return list(self._log_handler.entries)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def environment(self) -> Environment:
        return self._config.environment

    @property
    def chain(self) -> Chain:
        return self._config.chain

    @property
    def domain(self) -> dict[str, Any]:
        """EIP-712 domain every message is signed under."""
        return self._signer.domain

    @property
    def margin_assets(self) -> dict[MarginAsset, Address]:
        return self._config.margin_assets

    @property
    def sub_account_id(self) -> int:
        return self._sub_account_id

    def set_sub_account_id(self, sub_account_id: int) -> None:
        """Switch the sub-account used by subsequent operations.

        Args:
            sub_account_id: Sub-account id between 0 and 255

        Raises:
            ValidationError: If the id is not an integer in range

        """
        validate_sub_account_id(sub_account_id)
        log.info("Switching to sub-account %d.", sub_account_id)
        self._sub_account_id = sub_account_id

    """ Market API endpoints, can be called without an account """

    async def get_products(self) -> Result[JsonArray]:
        """List all tradable products.

        Endpoint:
            GET /products

        """
        return await self.__execute(
            "GET", "products", "products", [], transform=expect_list
        )

    async def get_product(self, identifier: int | str) -> Result[JsonObject]:
        """Get a single product by numeric id or by symbol.

        Args:
            identifier: Product id (e.g. ``1002``) or symbol (e.g. ``"ethperp"``)

        Returns:
            Result keyed ``product``. ``increment`` in the payload is the
            tick size expected by market orders.

        Endpoint:
            GET /products/product-by-id/{id} or GET /products/{symbol}

        """
        if isinstance(identifier, int) and not isinstance(identifier, bool):
            path = f"products/product-by-id/{identifier}"
        else:
            path = f"products/{quote(str(identifier), safe='')}"
        return await self.__execute(
            "GET", path, "product", {}, transform=without_error_field
        )

    async def get_server_time(self) -> Result[JsonObject]:
        """Get the exchange clock.

        Endpoint:
            GET /time

        """
        return await self.__execute(
            "GET",
            "time",
            None,
            {},
            transform=lambda body: {"serverTime": body["serverTime"]},
        )

    async def get_tickers(self, symbol: str | None = None) -> Result[JsonObject]:
        """Get 24 hour tickers keyed by product symbol.

        Args:
            symbol: Restrict to one product (optional)

        Endpoint:
            GET /ticker/24hr

        """
        path = "ticker/24hr"
        if symbol:
            path += f"?{urlencode({'symbol': symbol})}"
        return await self.__execute(
            "GET",
            path,
            "tickers",
            {},
            transform=lambda body: {
                ticker["productSymbol"]: ticker for ticker in expect_list(body)
            },
        )

    async def get_order_book(
        self, symbol: str, limit: int = 5, granularity: int = 10
    ) -> Result[JsonObject]:
        """Get order book depth for a product.

        Args:
            symbol: Product symbol (e.g. ``"ethperp"``)
            limit: Levels per side, one of 5, 10 or 20 (default: 5)
            granularity: Price bucketing of the levels (default: 10)

        Returns:
            Result whose value holds ``asks`` and ``bids``

        Endpoint:
            GET /depth

        """
        fallback: JsonObject = {"asks": [], "bids": []}
        if limit not in ORDER_BOOK_LIMITS:
            return Result.validation_error(
                None, fallback, f"Limit must be one of {', '.join(map(str, ORDER_BOOK_LIMITS))}."
            )
        params = urlencode({"symbol": symbol, "limit": limit, "granularity": granularity})
        return await self.__execute(
            "GET",
            f"depth?{params}",
            None,
            fallback,
            transform=lambda body: {"asks": body["asks"], "bids": body["bids"]},
        )

    async def get_klines(
        self, symbol: str, optional_args: KlineOptionalArgs | None = None
    ) -> Result[JsonArray]:
        """Get candlestick data for a product.

        The filters are checked before any request is made, in this order:
        limit within (0, 1000], start not after end, start not in the future.
        Each check only applies when the fields it compares are given.

        Args:
            symbol: Product symbol (e.g. ``"ethperp"``)
            optional_args: Interval, limit and time range filters (optional)

        Returns:
            Result keyed ``klines``

        Example:
            .. code-block:: python

                result = await client.get_klines(
                    "ethperp", KlineOptionalArgs(interval=Interval.ONE_HOUR, limit=24)
                )

        Endpoint:
            GET /uiKlines

        """
        params = {"symbol": symbol}
        if optional_args is not None:
            try:
                self.__validate_kline_args(optional_args)
            except ValidationError as e:
                return Result.validation_error("klines", [], str(e))
            params.update(optional_args.to_query())

        return await self.__execute(
            "GET", f"uiKlines?{urlencode(params)}", "klines", [], transform=expect_list
        )

    async def get_trade_history(
        self, symbol: str, quantity: int = 10
    ) -> Result[JsonArray]:
        """Get the most recent trades of this account on a product.

        Args:
            symbol: Product symbol
            quantity: Number of trades to look back (default: 10)

        Endpoint:
            GET /trade-history

        """
        params = urlencode(
            {
                "symbol": symbol,
                "lookback": quantity,
                "account": self.address,
                "subAccountId": self._sub_account_id,
            }
        )
        return await self.__execute(
            "GET",
            f"trade-history?{params}",
            "trades",
            [],
            transform=lambda body: body.get("trades") or [],
        )

    async def calculate_margin_requirement(
        self,
        is_buy: bool,
        price: CitrexNumericInput,
        product_id: int,
        quantity: CitrexNumericInput,
    ) -> Result[JsonValue]:
        """Get the margin a new order would require.

        Args:
            is_buy: Order side
            price: Order price
            product_id: Product id
            quantity: Order size

        Returns:
            Result keyed ``required``

        Endpoint:
            GET /new-order-margin

        """
        try:
            params = urlencode(
                {
                    "isBuy": "true" if is_buy else "false",
                    "price": to_fixed18(price),
                    "productId": product_id,
                    "quantity": to_fixed18(quantity),
                }
            )
        except ValidationError as e:
            return Result.validation_error("required", 0, str(e))
        return await self.__execute(
            "GET",
            f"new-order-margin?{params}",
            "required",
            0,
            transform=lambda body: body["value"],
        )

    """ Account endpoints """

    async def get_account_health(self) -> Result[JsonObject]:
        """Get margin health of the active sub-account.

        Endpoint:
            GET /account-health

        """
        params = urlencode({"account": self.address, "subAccountId": self._sub_account_id})
        return await self.__execute(
            "GET",
            f"account-health?{params}",
            "accountHealth",
            {},
            transform=lambda body: body["value"],
        )

    async def list_balances(self) -> Result[JsonArray]:
        """List margin balances of the active sub-account.

        Each balance is returned as ``{address, asset, pendingWithdrawal, quantity}``
        where ``asset`` is the MarginAsset name of ``address`` (None if unknown).

        Endpoint:
            GET /balances

        """
        asset_names = {
            address.lower(): asset.value for asset, address in self.margin_assets.items()
        }

        def to_balances(body: Json) -> JsonArray:
            return [
                {
                    "address": balance["asset"],
                    "asset": asset_names.get(str(balance["asset"]).lower()),
                    "pendingWithdrawal": balance["pendingWithdrawal"],
                    "quantity": balance["quantity"],
                }
                for balance in expect_list(body)
            ]

        return await self.__execute(
            "GET",
            f"balances?{self.__authenticated_query()}",
            "balances",
            [],
            transform=to_balances,
        )

    async def list_open_orders(self, symbol: str | None = None) -> Result[JsonArray]:
        """List open orders, optionally for one product.

        Endpoint:
            GET /openOrders

        """
        return await self.__execute(
            "GET",
            f"openOrders?{self.__authenticated_query(symbol)}",
            "orders",
            [],
            transform=expect_list,
        )

    async def list_positions(self, symbol: str | None = None) -> Result[JsonArray]:
        """List open positions, optionally for one product.

        Endpoint:
            GET /positionRisk

        """
        return await self.__execute(
            "GET",
            f"positionRisk?{self.__authenticated_query(symbol)}",
            "positions",
            [],
            transform=expect_list,
        )

    """ Trading endpoints """

    async def place_order(
        self,
        is_buy: bool,
        price: CitrexNumericInput,
        product_id: int,
        quantity: CitrexNumericInput,
        order_type: OrderType = OrderType.MARKET,
        time_in_force: TimeInForce = TimeInForce.FOK,
        expiration: int | None = None,
        nonce: Nonce | None = None,
        slippage: CitrexNumericInput = Decimal("2.5"),
        price_increment: int | None = None,
    ) -> Result[JsonObject]:
        """Place an order.

        Market orders are priced at ``price`` moved against the taker by
        ``slippage`` percent and rounded to the product's tick, which is why
        they need ``price_increment``.

        Args:
            is_buy: True to buy, False to sell
            price: Limit price, or reference price for market orders
            product_id: Product id (e.g. ``1002``)
            quantity: Order size
            order_type: Order type (default: MARKET)
            time_in_force: Time in force (default: FOK)
            expiration: Expiry in unix milliseconds (default: now + 30 days)
            nonce: Explicit nonce (default: current time in microseconds)
            slippage: Market order slippage percent (default: 2.5)
            price_increment: Product tick size as an 18 decimal integer, the
                ``increment`` of get_product (required for market orders)

        Returns:
            Result keyed ``order`` holding the accepted order

        Raises:
            Exception: Only if the order cannot be signed

        Example:
            .. code-block:: python

                result = await client.place_order(
                    True, 3450, 1002, "0.001", price_increment=100000000000000000
                )
                result = await client.place_order(
                    False, 3450, 1002, "0.001",
                    order_type=OrderType.LIMIT, time_in_force=TimeInForce.GTC,
                )

        Endpoint:
            POST /order

        """
        return await self.__place_order(
            OrderArgs(
                is_buy=is_buy,
                price=price,
                product_id=product_id,
                quantity=quantity,
                order_type=order_type,
                time_in_force=time_in_force,
                expiration=expiration,
                nonce=nonce,
                slippage=slippage,
                price_increment=price_increment,
            )
        )

    async def place_orders(self, orders: list[OrderArgs]) -> list[Result[JsonObject]]:
        """Place several orders concurrently.

        Results are in the same order as ``orders``. A failing order does not
        affect the others.

        Endpoint:
            POST /order (once per order)

        """
        return list(await asyncio.gather(*(self.__place_order(order) for order in orders)))

    async def cancel_and_replace_order(
        self, order_id: OrderId, replacement: ReplacementOrderArgs
    ) -> Result[JsonObject]:
        """Atomically cancel an order and place a new one.

        The new order is always a LIMIT_MAKER order with GTC time in force.

        Args:
            order_id: Id of the order to cancel (0x-prefixed 32 byte hex)
            replacement: Parameters of the new order

        Returns:
            Result keyed ``order`` holding the new order

        Endpoint:
            POST /order/cancel-and-replace

        """
        try:
            message = self.__build_order(
                OrderArgs(
                    is_buy=replacement.is_buy,
                    price=replacement.price,
                    product_id=replacement.product_id,
                    quantity=replacement.quantity,
                    order_type=OrderType.LIMIT_MAKER,
                    time_in_force=TimeInForce.GTC,
                    expiration=replacement.expiration,
                    nonce=replacement.nonce,
                )
            )
        except ValidationError as e:
            return Result.validation_error("order", {}, str(e))

        body = {
            "idToCancel": order_id,
            "newOrder": message.with_signature(self._signer.sign(message)),
        }
        return await self.__execute(
            "POST",
            "order/cancel-and-replace",
            "order",
            {},
            json=body,
            transform=without_error_field,
        )

    async def cancel_order(self, order_id: OrderId, product_id: int) -> Result[bool]:
        """Cancel a single order.

        Args:
            order_id: Order id (0x-prefixed 32 byte hex)
            product_id: Product the order belongs to

        Returns:
            Result keyed ``success``

        Endpoint:
            DELETE /order

        """
        try:
            message = build_cancel_order_message(
                account=self.address,
                order_id=order_id,
                product_id=product_id,
                sub_account_id=self._sub_account_id,
            )
        except ValidationError as e:
            return Result.validation_error("success", False, str(e))
        return await self.__execute(
            "DELETE",
            "order",
            "success",
            False,
            json=message.with_signature(self._signer.sign(message)),
            transform=lambda body: body["success"],
        )

    async def cancel_orders(
        self, orders: list[CancelOrderArgs | tuple[OrderId, int]]
    ) -> list[Result[bool]]:
        """Cancel several orders concurrently, results in input order.

        Args:
            orders: CancelOrderArgs or ``(order_id, product_id)`` pairs

        """
        args = [
            order if isinstance(order, CancelOrderArgs) else CancelOrderArgs(*order)
            for order in orders
        ]
        return list(
            await asyncio.gather(
                *(self.cancel_order(arg.order_id, arg.product_id) for arg in args)
            )
        )

    async def cancel_open_orders_for_product(self, product_id: int) -> Result[bool]:
        """Cancel every open order of the active sub-account on a product.

        Endpoint:
            DELETE /openOrders

        """
        try:
            message = build_cancel_orders_message(
                account=self.address,
                product_id=product_id,
                sub_account_id=self._sub_account_id,
            )
        except ValidationError as e:
            return Result.validation_error("success", False, str(e))
        return await self.__execute(
            "DELETE",
            "openOrders",
            "success",
            False,
            json=message.with_signature(self._signer.sign(message)),
            transform=lambda body: body["success"],
        )

    """ Capital endpoints """

    async def withdraw(
        self, quantity: CitrexNumericInput, asset: MarginAsset = MarginAsset.USDC
    ) -> Result[bool]:
        """Request a withdrawal of margin from the active sub-account.

        Args:
            quantity: Amount in whole units of the asset (e.g. ``100`` USDC)
            asset: Margin asset to withdraw (default: USDC)

        Returns:
            Result keyed ``success``

        Endpoint:
            POST /withdraw

        """
        log.info("Withdrawing %s %s...", quantity, asset.value)
        try:
            message = build_withdraw_message(
                account=self.address,
                asset=self.__margin_asset_address(asset),
                sub_account_id=self._sub_account_id,
                nonce=self._nonces.next(),
                quantity=to_fixed6(quantity),
            )
        except ValidationError as e:
            return Result.validation_error("success", False, str(e))

        result = await self.__execute(
            "POST",
            "withdraw",
            "success",
            False,
            json=message.with_signature(self._signer.sign(message)),
            transform=lambda body: body["success"],
        )
        if result.ok:
            log.info("Withdrawal completed!")
        return result

    async def deposit(
        self,
        quantity: CitrexNumericInput,
        asset: MarginAsset = MarginAsset.USDC,
        *,
        poll_interval: float = 1,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> Result[JsonObject]:
        """Deposit margin into the vault on-chain.

        Approves the vault for ``quantity`` first if the current allowance is
        too low, then calls ``deposit`` and waits for both receipts.

        Args:
            quantity: Amount in whole units of the asset
            asset: Margin asset to deposit (default: USDC)
            poll_interval: Seconds between receipt checks (default: 1)
            timeout: Give up waiting for a receipt after this many seconds
                (default: wait until mined)
            cancel_event: Stop waiting for receipts once set

        Returns:
            Result whose value holds ``success`` and ``transactionHash``.
            Contract reverts are reported with ``error_name`` set.

        """
        fallback: JsonObject = {"success": False}
        log.info("Depositing %s %s...", quantity, asset.value)
        try:
            asset_address = self.__margin_asset_address(asset)
            amount = to_fixed6(quantity)
        except ValidationError as e:
            return Result.validation_error(None, fallback, str(e))

        chain = self.__chain
        vault = self._config.vault_address
        wait_options = {
            "poll_interval": poll_interval,
            "timeout": timeout,
            "cancel_event": cancel_event,
        }
        try:
            allowance = await chain.get_allowance(asset_address, self.address, vault)
            if allowance < amount:
                approval_hash = await chain.approve(asset_address, vault, amount)
                log.info("Waiting for approval confirmation...")
                await self.__confirm(approval_hash, **wait_options)

            deposit_hash = await chain.deposit(
                vault, self.address, self._sub_account_id, amount, asset_address
            )
            log.info("Waiting for deposit confirmation...")
            await self.__confirm(deposit_hash, **wait_options)
        except ContractRevertError as e:
            log.error("An error occurred. %s: %s", e.error_name, e.message)
            log.debug("Contract call reverted", exc_info=True)
            return Result.api_error(None, fallback, e.message, e.error_name)
        except Exception:
            log.debug("Deposit failed", exc_info=True)
            return Result.unknown_error(None, fallback)

        log.info("Deposit completed!")
        return Result.success(None, {"success": True, "transactionHash": deposit_hash})

    """ Deferred helpers """

    async def __execute(
        self,
        method: str,
        path: str,
        key: str | None,
        fallback: T,
        json: Json | None = None,
        transform: Callable[[Any], T] | None = None,
    ) -> Result[T]:
        """Send a request and fold its outcome into a Result.

        A body with an ``error`` field is an API error whatever the status.
        Anything raised on the way (transport, status, malformed payload) is
        logged and reported as the unknown error.
        """
        error: str | None = None
        value: Any = None
        try:
            response = await self.__send_request(method, path, json)
            error = extract_api_error(response.body)
            if error is None:
                raise_response_errors(response)
                value = response.body if transform is None else transform(response.body)
        except Exception:
            log.debug("%s %s failed", method, path, exc_info=True)
            return Result.unknown_error(key, fallback)

        if error is not None:
            log.error(error)
            return Result.api_error(key, fallback, error)
        return Result.success(key, value)

    async def __send_request(
        self, method: str, path: str, json: Json | None = None
    ) -> HttpResponse:
        if self._referral_pending:
            self.__schedule_referral()
        log.debug("Communicating with API... %s %s body=%s", method, path, json)
        return await self._http_executor.send_request(method, path, json)

    def __schedule_referral(self) -> None:
        self._referral_pending = False
        task = asyncio.get_running_loop().create_task(self.__refer())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def __refer(self) -> None:
        try:
            await self._http_executor.send_request(
                "POST", "vault/referral", {"account": self.address, "code": REFERRAL_CODE}
            )
        except Exception:
            log.debug("Call failed, ignoring.", exc_info=True)

    async def __confirm(self, transaction_hash: str, **wait_options: Any) -> None:
        receipt = await wait_for_transaction(
            self.__chain, transaction_hash, **wait_options
        )
        log.debug("Transaction receipt: %s", receipt)
        if receipt.get("status") == 0:
            raise ContractRevertError(f"Transaction {transaction_hash} reverted")

    """ Private helpers """

    @property
    def __chain(self) -> ChainExecutor:
        if self._chain_executor is None:
            self._chain_executor = DEFAULT_CHAIN_EXECUTOR(
                self._config.rpc_url, self._account, self._config.chain.id
            )
        return self._chain_executor

    def __margin_asset_address(self, asset: MarginAsset) -> Address:
        try:
            return self.margin_assets[MarginAsset(asset)]
        except (KeyError, ValueError) as e:
            raise ValidationError(
                f"{asset=} is not a margin asset on {self.environment.value}"
            ) from e

    def __authenticated_query(self, symbol: str | None = None) -> str:
        """Query string carrying a SignedAuthentication signature."""
        message = build_authentication_message(
            account=self.address, sub_account_id=self._sub_account_id
        )
        params: dict[str, str | int] = {
            "account": self.address,
            "signature": self._signer.sign(message),
            "subAccountId": self._sub_account_id,
        }
        if symbol:
            params["symbol"] = symbol
        return urlencode(params)

    def __validate_kline_args(self, args: KlineOptionalArgs) -> None:
        if args.limit is not None and not 0 < args.limit <= KLINE_LIMIT_MAX:
            raise ValidationError(f"Limit must be between 0 and {KLINE_LIMIT_MAX}.")
        if (
            args.start_time is not None
            and args.end_time is not None
            and args.start_time > args.end_time
        ):
            raise ValidationError("Start time cannot be after end time.")
        if args.start_time is not None and args.start_time > current_timestamp_ms():
            raise ValidationError("Start time cannot be in the future.")

    def __build_order(self, order: OrderArgs) -> SignableMessage:
        """Validate an order, derive its defaults and build the Order message."""
        try:
            order_type = OrderType(order.order_type)
            time_in_force = TimeInForce(order.time_in_force)
        except ValueError as e:
            raise ValidationError(f"Invalid order type or time in force: {e}") from e

        if order_type is OrderType.MARKET:
            if order.price_increment is None:
                raise ValidationError("A priceIncrement is required for market orders")
            price = to_fixed18(
                adjust_price_for_slippage(
                    order.is_buy, order.price, order.slippage, order.price_increment
                )
            )
        else:
            price = to_fixed18(order.price)

        return build_order_message(
            account=self.address,
            is_buy=order.is_buy,
            expiration=order.expiration if order.expiration is not None else default_expiration(),
            nonce=order.nonce if order.nonce is not None else self._nonces.next(),
            order_type=order_type,
            price=price,
            product_id=order.product_id,
            quantity=to_fixed18(order.quantity),
            sub_account_id=self._sub_account_id,
            time_in_force=time_in_force,
        )

    async def __place_order(self, order: OrderArgs) -> Result[JsonObject]:
        try:
            message = self.__build_order(order)
        except ValidationError as e:
            return Result.validation_error("order", {}, str(e))
        return await self.__execute(
            "POST",
            "order",
            "order",
            {},
            json=message.with_signature(self._signer.sign(message)),
            transform=without_error_field,
        )
