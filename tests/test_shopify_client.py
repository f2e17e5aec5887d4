"""Tests for the Shopify GraphQL client."""

from __future__ import annotations

import json

import httpx
import pytest

from shopify_mcp.services.shopify_client import ShopifyAPIError, ShopifyClient, gid_to_id, to_gid

CUSTOMERS_RESPONSE = {
    "data": {
        "customers": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/Customer/42",
                        "firstName": "Alice",
                        "lastName": "Johnson",
                        "email": "a@x.com",
                    }
                }
            ]
        }
    }
}

ORDERS_RESPONSE = {
    "data": {
        "orders": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/Order/9",
                        "name": "#1001",
                        "createdAt": "2024-01-01T00:00:00Z",
                        "displayFinancialStatus": "PAID",
                        "displayFulfillmentStatus": "FULFILLED",
                        "totalPriceSet": {"shopMoney": {"amount": "19.99", "currencyCode": "USD"}},
                        "lineItems": {"edges": [{"node": {"title": "Mug", "quantity": 2}}]},
                    }
                }
            ]
        }
    }
}


def make_client(handler) -> ShopifyClient:
    return ShopifyClient(
        domain="test.myshopify.com",
        access_token="secret",
        api_version="2023-07",
        transport=httpx.MockTransport(handler),
    )


def test_gid_to_id():
    assert gid_to_id("gid://shopify/Customer/42") == "42"
    assert gid_to_id("42") == "42"


@pytest.mark.asyncio
async def test_find_customers_sends_query():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["token"] = request.headers["X-Shopify-Access-Token"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=CUSTOMERS_RESPONSE)

    customers = await make_client(handler).find_customers("email:a@x.com", 1)

    assert seen["url"] == "https://test.myshopify.com/admin/api/2023-07/graphql.json"
    assert seen["token"] == "secret"
    assert seen["body"]["variables"] == {"first": 1, "query": "email:a@x.com"}
    assert len(customers) == 1
    assert customers[0].id == "gid://shopify/Customer/42"
    assert customers[0].first_name == "Alice"


@pytest.mark.asyncio
async def test_get_customer_orders_formats_orders():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=ORDERS_RESPONSE)

    orders = await make_client(handler).get_customer_orders("42", 5)

    assert seen["body"]["variables"] == {"first": 5, "query": "customer_id:42"}
    assert orders == [
        {
            "id": "gid://shopify/Order/9",
            "name": "#1001",
            "createdAt": "2024-01-01T00:00:00Z",
            "financialStatus": "PAID",
            "fulfillmentStatus": "FULFILLED",
            "totalPrice": "19.99",
            "currencyCode": "USD",
            "lineItems": [{"title": "Mug", "quantity": 2}],
        }
    ]


@pytest.mark.asyncio
async def test_get_orders_any_status_has_no_filter():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"orders": {"edges": []}}})

    assert await make_client(handler).get_orders("any", 10) == []
    assert seen["body"]["variables"]["query"] is None


@pytest.mark.asyncio
async def test_http_error_status_raises():
    client = make_client(lambda request: httpx.Response(503, text="unavailable"))
    with pytest.raises(ShopifyAPIError, match="503"):
        await client.find_customers("email:a@x.com", 1)


@pytest.mark.asyncio
async def test_graphql_errors_raise():
    client = make_client(
        lambda request: httpx.Response(200, json={"errors": [{"message": "Throttled"}]})
    )
    with pytest.raises(ShopifyAPIError, match="Throttled"):
        await client.get_orders("open", 10)


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(ShopifyAPIError, match="boom"):
        await make_client(handler).find_customers(None, 10)


def recording_client(response: dict, seen: list) -> ShopifyClient:
    """Client whose transport records each request body and replies with *response*."""

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=response)

    return make_client(handler)


def test_to_gid():
    assert to_gid("Order", "1001") == "gid://shopify/Order/1001"
    assert to_gid("Order", "gid://shopify/Order/1001") == "gid://shopify/Order/1001"


@pytest.mark.asyncio
async def test_html_body_raises():
    client = make_client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(ShopifyAPIError, match="invalid response"):
        await client.find_customers("email:a@x.com", 1)


# ──────────────────────────────────────────────────────────
# Products
# ──────────────────────────────────────────────────────────
PRODUCT_NODE = {
    "id": "gid://shopify/Product/7",
    "title": "Mug",
    "handle": "mug",
    "description": "A mug",
    "status": "ACTIVE",
    "vendor": "Acme",
    "productType": "Kitchen",
    "tags": ["ceramic"],
    "totalInventory": 12,
    "priceRangeV2": {"minVariantPrice": {"amount": "9.50", "currencyCode": "USD"}},
    "variants": {"edges": [{"node": {"id": "gid://shopify/ProductVariant/1", "title": "Default"}}]},
}


@pytest.mark.asyncio
async def test_get_products_filters_by_title():
    seen: list = []
    client = recording_client({"data": {"products": {"edges": [{"node": PRODUCT_NODE}]}}}, seen)

    products = await client.get_products("mug", 5)

    assert seen[0]["variables"] == {"first": 5, "query": "title:*mug*"}
    assert products[0]["title"] == "Mug"
    assert products[0]["price"] == "9.50"
    assert products[0]["variants"] == [{"id": "gid://shopify/ProductVariant/1", "title": "Default"}]


@pytest.mark.asyncio
async def test_get_product_by_id_uses_gid():
    seen: list = []
    client = recording_client({"data": {"product": PRODUCT_NODE}}, seen)

    product = await client.get_product_by_id("7")

    assert seen[0]["variables"] == {"id": "gid://shopify/Product/7"}
    assert product["id"] == "gid://shopify/Product/7"


@pytest.mark.asyncio
async def test_get_product_by_id_not_found():
    client = recording_client({"data": {"product": None}}, [])
    with pytest.raises(ShopifyAPIError, match="not found"):
        await client.get_product_by_id("7")


@pytest.mark.asyncio
async def test_create_product_sends_input():
    seen: list = []
    client = recording_client(
        {"data": {"productCreate": {"product": {"id": "gid://shopify/Product/8"}, "userErrors": []}}},
        seen,
    )

    product = await client.create_product(title="Mug", status="DRAFT")

    assert seen[0]["variables"] == {"input": {"title": "Mug", "status": "DRAFT"}}
    assert product == {"id": "gid://shopify/Product/8"}


# ──────────────────────────────────────────────────────────
# Orders & customers
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_get_order_by_id_includes_details():
    node = dict(ORDERS_RESPONSE["data"]["orders"]["edges"][0]["node"])
    node.update(email="a@x.com", note="gift", tags=["vip"], customer={"id": "gid://shopify/Customer/42"})
    seen: list = []
    client = recording_client({"data": {"order": node}}, seen)

    order = await client.get_order_by_id("9")

    assert seen[0]["variables"] == {"id": "gid://shopify/Order/9"}
    assert order["name"] == "#1001"
    assert order["note"] == "gift"
    assert order["customer"] == {"id": "gid://shopify/Customer/42"}
    assert order["shippingAddress"] is None


@pytest.mark.asyncio
async def test_update_order_user_errors_raise():
    client = recording_client(
        {
            "data": {
                "orderUpdate": {
                    "order": None,
                    "userErrors": [{"field": ["email"], "message": "Email is invalid"}],
                }
            }
        },
        [],
    )
    with pytest.raises(ShopifyAPIError, match="Email is invalid"):
        await client.update_order("9", email="bad")


@pytest.mark.asyncio
async def test_update_customer_sends_gid():
    seen: list = []
    client = recording_client(
        {"data": {"customerUpdate": {"customer": {"id": "gid://shopify/Customer/42"}, "userErrors": []}}},
        seen,
    )

    customer = await client.update_customer("42", note="VIP", taxExempt=True)

    assert seen[0]["variables"] == {
        "input": {"id": "gid://shopify/Customer/42", "note": "VIP", "taxExempt": True}
    }
    assert customer == {"id": "gid://shopify/Customer/42"}
