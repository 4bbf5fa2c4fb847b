from decimal import Decimal

import pytest

from citrex_sdk.errors import HttpConnectionError
from citrex_sdk.executors.interface import HttpResponse
from citrex_sdk.signing import build_order_message, recover_signer
from citrex_sdk.types import (
    OrderArgs,
    OrderType,
    ReplacementOrderArgs,
    ResultKind,
    TimeInForce,
    UNKNOWN_ERROR,
)
from tests.mock_executors import MockExceptionOutput, MockSuccessfulOutput
from tests.unit.conftest import (
    ADDRESS,
    FROZEN_EXPIRATION,
    FROZEN_NONCE,
    ORDER_ID,
    load_json,
    make_domain,
)

ETH_INCREMENT = 10**17

ORDER_KEYS = [
    "expiration",
    "nonce",
    "price",
    "quantity",
    "signature",
    "account",
    "isBuy",
    "orderType",
    "productId",
    "subAccountId",
    "timeInForce",
]


def _stage_post(mock_http, path: str, body, status: int = 200) -> None:
    mock_http.stage_output(
        MockSuccessfulOutput(
            output=HttpResponse(status=status, body=body),
            call_validation=lambda call: call.function_name == "send_request"
            and call.arg_pack[0:2] == ("POST", path)
            and call.arg_pack[2] is not None,
        )
    )


def _assert_signed_order(payload: dict) -> None:
    message = build_order_message(
        account=ADDRESS,
        is_buy=payload["isBuy"],
        expiration=payload["expiration"],
        nonce=payload["nonce"],
        order_type=OrderType(payload["orderType"]),
        price=int(payload["price"]),
        product_id=payload["productId"],
        quantity=int(payload["quantity"]),
        sub_account_id=payload["subAccountId"],
        time_in_force=TimeInForce(payload["timeInForce"]),
    )
    assert recover_signer(make_domain(), message, payload["signature"]) == ADDRESS


@pytest.mark.asyncio
async def test_place_market_buy_order(mock_http_client, frozen_time):
    client, mock_http = mock_http_client
    response = load_json("response.order")
    _stage_post(mock_http, "order", response)

    result = await client.place_order(
        True, 3450, 1002, "0.001", price_increment=ETH_INCREMENT
    )

    sent = mock_http.call_log[0].arg_pack[2]
    assert list(sent) == ORDER_KEYS
    assert sent["expiration"] == FROZEN_EXPIRATION
    assert sent["nonce"] == FROZEN_NONCE
    assert sent["price"] == "3536300000000000000000"
    assert sent["quantity"] == "1000000000000000"
    assert sent["account"] == ADDRESS
    assert sent["isBuy"] is True
    assert sent["orderType"] == OrderType.MARKET.value
    assert sent["timeInForce"] == TimeInForce.FOK.value
    assert sent["subAccountId"] == 1
    _assert_signed_order(sent)

    assert result.ok
    assert result.to_dict() == {"order": response}


@pytest.mark.asyncio
async def test_place_market_sell_order_with_slippage(mock_http_client, frozen_time):
    client, mock_http = mock_http_client
    _stage_post(mock_http, "order", load_json("response.order"))

    await client.place_order(
        False, 3450, 1002, "0.001", slippage=Decimal("1.25"), price_increment=ETH_INCREMENT
    )

    sent = mock_http.call_log[0].arg_pack[2]
    assert sent["price"] == "3406900000000000000000"
    assert sent["isBuy"] is False


@pytest.mark.asyncio
async def test_place_limit_order_keeps_price(mock_http_client):
    client, mock_http = mock_http_client
    _stage_post(mock_http, "order", load_json("response.order"))

    await client.place_order(
        True,
        3450,
        1002,
        "0.001",
        order_type=OrderType.LIMIT,
        time_in_force=TimeInForce.IOC,
        expiration=1800000000000,
        nonce=123,
    )

    sent = mock_http.call_log[0].arg_pack[2]
    assert sent["price"] == "3450000000000000000000"
    assert sent["expiration"] == 1800000000000
    assert sent["nonce"] == 123
    assert sent["orderType"] == 0
    assert sent["timeInForce"] == 2
    _assert_signed_order(sent)


@pytest.mark.asyncio
async def test_place_market_order_requires_price_increment(mock_http_client):
    client, mock_http = mock_http_client

    result = await client.place_order(True, 3450, 1002, "0.001")

    assert result.kind is ResultKind.VALIDATION_ERROR
    assert result.value == {}
    assert "priceIncrement" in result.error.message
    assert mock_http.call_log == []


@pytest.mark.asyncio
async def test_place_order_rejects_excessive_slippage(mock_http_client):
    client, mock_http = mock_http_client

    result = await client.place_order(
        False, 3450, 1002, 1, slippage=150, price_increment=ETH_INCREMENT
    )

    assert result.kind is ResultKind.VALIDATION_ERROR
    assert mock_http.call_log == []


@pytest.mark.asyncio
async def test_place_order_api_error(mock_http_client):
    client, mock_http = mock_http_client
    _stage_post(mock_http, "order", {"error": "Insufficient margin"}, status=400)

    result = await client.place_order(
        True, 3450, 1002, 100, order_type=OrderType.LIMIT, time_in_force=TimeInForce.GTC
    )

    assert result.to_dict() == {"order": {}, "error": {"message": "Insufficient margin"}}


@pytest.mark.asyncio
async def test_place_orders_preserves_input_order(mock_http_client, frozen_time):
    client, mock_http = mock_http_client
    _stage_post(mock_http, "order", {"id": "first"})
    _stage_post(mock_http, "order", {"error": "Order would cross"})

    orders = [
        OrderArgs(True, 3450, 1002, "0.001", price_increment=ETH_INCREMENT),
        OrderArgs(False, 3450, 1002, "0.001"),
        OrderArgs(False, 3460, 1002, "0.002", order_type=OrderType.LIMIT_MAKER),
    ]
    results = await client.place_orders(orders)

    assert [r.kind for r in results] == [
        ResultKind.OK,
        ResultKind.VALIDATION_ERROR,
        ResultKind.API_ERROR,
    ]
    assert results[0].value == {"id": "first"}
    assert results[2].error.message == "Order would cross"

    nonces = [call.arg_pack[2]["nonce"] for call in mock_http.call_log]
    assert nonces == [FROZEN_NONCE, FROZEN_NONCE + 1]
    assert mock_http.call_log[1].arg_pack[2]["price"] == "3460000000000000000000"


@pytest.mark.asyncio
async def test_place_orders_empty(mock_http_client):
    client, mock_http = mock_http_client

    assert await client.place_orders([]) == []
    assert mock_http.call_log == []


@pytest.mark.asyncio
async def test_cancel_and_replace_order(mock_http_client, frozen_time):
    client, mock_http = mock_http_client
    response = load_json("response.order")
    _stage_post(mock_http, "order/cancel-and-replace", {**response, "error": None})

    result = await client.cancel_and_replace_order(
        ORDER_ID,
        ReplacementOrderArgs(is_buy=True, price="3440.5", product_id=1002, quantity=2),
    )

    sent = mock_http.call_log[0].arg_pack[2]
    assert list(sent) == ["idToCancel", "newOrder"]
    assert sent["idToCancel"] == ORDER_ID
    new_order = sent["newOrder"]
    assert list(new_order) == ORDER_KEYS
    assert new_order["orderType"] == OrderType.LIMIT_MAKER.value
    assert new_order["timeInForce"] == TimeInForce.GTC.value
    assert new_order["price"] == "3440500000000000000000"
    assert new_order["quantity"] == "2000000000000000000"
    assert new_order["nonce"] == FROZEN_NONCE
    _assert_signed_order(new_order)

    assert result.to_dict() == {"order": response}


@pytest.mark.asyncio
async def test_cancel_and_replace_order_invalid_quantity(mock_http_client):
    client, mock_http = mock_http_client

    result = await client.cancel_and_replace_order(
        ORDER_ID,
        ReplacementOrderArgs(is_buy=False, price=3440, product_id=1002, quantity="-1"),
    )

    assert result.kind is ResultKind.VALIDATION_ERROR
    assert result.value == {}
    assert mock_http.call_log == []


@pytest.mark.asyncio
async def test_place_orders_transport_failure_is_isolated(mock_http_client):
    client, mock_http = mock_http_client
    mock_http.stage_output(
        [
            MockSuccessfulOutput(output=HttpResponse(status=200, body={"id": "a"})),
            MockExceptionOutput(HttpConnectionError("reset by peer", url="order")),
        ]
    )
    limit = dict(order_type=OrderType.LIMIT, time_in_force=TimeInForce.GTC)

    results = await client.place_orders(
        [
            OrderArgs(True, 3400, 1002, 1, **limit),
            OrderArgs(True, "three", 1002, 1, **limit),
            OrderArgs(False, 3500, 1002, 1, **limit),
        ]
    )

    assert [r.to_dict() for r in results] == [
        {"order": {"id": "a"}},
        {"order": {}, "error": {"message": results[1].error.message}},
        {"order": {}, "error": {"message": UNKNOWN_ERROR}},
    ]
    assert results[1].kind is ResultKind.VALIDATION_ERROR


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        dict(product_id="ethperp"),
        dict(expiration=1.8e12),
        dict(nonce=-1),
        dict(product_id=2**33),
        dict(quantity=10**40),
        dict(price=10**21),
        dict(is_buy="yes"),
    ],
)
async def test_place_orders_malformed_integer_fields_are_isolated(
    mock_http_client, overrides
):
    client, mock_http = mock_http_client
    _stage_post(mock_http, "order", {"id": "a"})
    _stage_post(mock_http, "order", {"id": "c"})
    limit = dict(order_type=OrderType.LIMIT, time_in_force=TimeInForce.GTC)
    malformed = dict(
        is_buy=True, price=3400, product_id=1002, quantity=1, **limit
    )
    malformed.update(overrides)

    results = await client.place_orders(
        [
            OrderArgs(True, 3400, 1002, 1, **limit),
            OrderArgs(**malformed),
            OrderArgs(False, 3500, 1002, 1, **limit),
        ]
    )

    assert [r.kind for r in results] == [
        ResultKind.OK,
        ResultKind.VALIDATION_ERROR,
        ResultKind.OK,
    ]
    assert results[1].value == {}
    assert len(mock_http.call_log) == 2


@pytest.mark.asyncio
async def test_place_order_signing_failure_raises(mock_http_client, monkeypatch):
    client, mock_http = mock_http_client

    def broken_sign(message):
        raise RuntimeError("signer unavailable")

    monkeypatch.setattr(client._signer, "sign", broken_sign)

    with pytest.raises(RuntimeError, match="signer unavailable"):
        await client.place_order(
            True,
            3450,
            1002,
            1,
            order_type=OrderType.LIMIT,
            time_in_force=TimeInForce.GTC,
        )

    assert mock_http.call_log == []
