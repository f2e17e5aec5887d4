"""Shopify Admin GraphQL client.

Thin async wrapper used by the MCP tools and by the OTP verifier to look
up and update products, customers and orders.  Every failure (transport
error, non-200 response, unreadable body, GraphQL ``errors`` payload or
mutation ``userErrors``) is raised as ``ShopifyAPIError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from shopify_mcp.config import settings

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = """
  id
  title
  handle
  description
  status
  vendor
  productType
  tags
  totalInventory
  priceRangeV2 {
    minVariantPrice {
      amount
      currencyCode
    }
  }
  variants(first: 5) {
    edges {
      node {
        id
        title
        price
        sku
        inventoryQuantity
      }
    }
  }
"""

ORDER_FIELDS = """
  id
  name
  createdAt
  displayFinancialStatus
  displayFulfillmentStatus
  totalPriceSet {
    shopMoney {
      amount
      currencyCode
    }
  }
  lineItems(first: 10) {
    edges {
      node {
        title
        quantity
      }
    }
  }
"""

CUSTOMERS_QUERY = """
query getCustomers($first: Int!, $query: String) {
  customers(first: $first, query: $query) {
    edges {
      node {
        id
        firstName
        lastName
        email
        phone
        createdAt
        tags
      }
    }
  }
}
"""

PRODUCTS_QUERY = (
    """
query getProducts($first: Int!, $query: String) {
  products(first: $first, query: $query) {
    edges {
      node {"""
    + PRODUCT_FIELDS
    + """}
    }
  }
}
"""
)

PRODUCT_QUERY = (
    """
query getProductById($id: ID!) {
  product(id: $id) {"""
    + PRODUCT_FIELDS
    + """}
}
"""
)

ORDERS_QUERY = (
    """
query getOrders($first: Int!, $query: String) {
  orders(first: $first, query: $query, sortKey: CREATED_AT, reverse: true) {
    edges {
      node {"""
    + ORDER_FIELDS
    + """}
    }
  }
}
"""
)

ORDER_QUERY = (
    """
query getOrderById($id: ID!) {
  order(id: $id) {"""
    + ORDER_FIELDS
    + """
    email
    note
    tags
    customer {
      id
      firstName
      lastName
      email
    }
    shippingAddress {
      address1
      address2
      city
      province
      zip
      country
    }
  }
}
"""
)

ORDER_UPDATE_MUTATION = """
mutation orderUpdate($input: OrderInput!) {
  orderUpdate(input: $input) {
    order {
      id
      name
      email
      note
      tags
      customAttributes {
        key
        value
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

CUSTOMER_UPDATE_MUTATION = """
mutation customerUpdate($input: CustomerInput!) {
  customerUpdate(input: $input) {
    customer {
      id
      firstName
      lastName
      email
      phone
      tags
      note
      taxExempt
    }
    userErrors {
      field
      message
    }
  }
}
"""

PRODUCT_CREATE_MUTATION = """
mutation productCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product {
      id
      title
      handle
      status
      vendor
      productType
      tags
      descriptionHtml
    }
    userErrors {
      field
      message
    }
  }
}
"""


class ShopifyAPIError(Exception):
    """Raised when a call to the Shopify Admin API fails."""


@dataclass
class CustomerRecord:
    """Lightweight value object returned by customer lookups."""

    id: str
    first_name: str | None
    last_name: str | None
    email: str | None


def gid_to_id(gid: str) -> str:
    """Extract the numeric id from a global id: ``gid://shopify/Customer/42`` → ``42``."""
    return gid.rsplit("/", 1)[-1]


def to_gid(resource: str, resource_id: str) -> str:
    """Build a global id from a numeric one; global ids pass through unchanged."""
    if resource_id.startswith("gid://"):
        return resource_id
    return f"gid://shopify/{resource}/{resource_id}"


class ShopifyClient:
    """Async GraphQL client for the Shopify Admin API."""

    def __init__(
        self,
        domain: str | None = None,
        access_token: str | None = None,
        api_version: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        domain = domain or settings.myshopify_domain
        version = api_version or settings.shopify_api_version
        self._url = f"https://{domain}/admin/api/{version}/graphql.json"
        self._headers = {
            "X-Shopify-Access-Token": access_token or settings.shopify_access_token,
            "Content-Type": "application/json",
        }
        self._transport = transport

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict:
        """Run a GraphQL document and return its ``data`` object."""
        payload = {"query": query, "variables": variables or {}}
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
                resp = await client.post(self._url, json=payload, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.exception("Shopify request error: %s", exc)
            raise ShopifyAPIError(f"Shopify request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error("Shopify request failed: %s %s", resp.status_code, resp.text)
            raise ShopifyAPIError(f"Shopify returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            logger.error("Shopify returned a non-JSON body: %s", resp.text[:200])
            raise ShopifyAPIError("Shopify returned an invalid response") from exc

        if body.get("errors"):
            messages = "; ".join(err.get("message", str(err)) for err in body["errors"])
            logger.error("Shopify GraphQL errors: %s", messages)
            raise ShopifyAPIError(messages)
        return body.get("data") or {}

    async def _mutate(self, mutation: str, field: str, resource: str, input_: dict) -> dict:
        """Run a mutation and return its *resource* object, raising on ``userErrors``."""
        data = await self.execute(mutation, {"input": input_})
        result = data.get(field) or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            messages = "; ".join(err["message"] for err in user_errors)
            logger.warning("%s rejected: %s", field, messages)
            raise ShopifyAPIError(messages)
        return result.get(resource) or {}

    # ── Products ─────────────────────────────────────────

    async def get_products(self, search_title: str | None = None, limit: int = 10) -> list[dict]:
        """List products, optionally filtered by a title fragment."""
        query = f"title:*{search_title}*" if search_title else None
        data = await self.execute(PRODUCTS_QUERY, {"first": limit, "query": query})
        return [_format_product(node) for node in _nodes(data.get("products"))]

    async def get_product_by_id(self, product_id: str) -> dict:
        data = await self.execute(PRODUCT_QUERY, {"id": to_gid("Product", product_id)})
        if not data.get("product"):
            raise ShopifyAPIError(f"Product {product_id} not found")
        return _format_product(data["product"])

    async def create_product(self, **fields: Any) -> dict:
        """Create a product from ``ProductInput`` fields (``title``, ``status`` …)."""
        return await self._mutate(PRODUCT_CREATE_MUTATION, "productCreate", "product", fields)

    # ── Customers ────────────────────────────────────────

    async def find_customers(self, query: str | None, limit: int = 10) -> list[CustomerRecord]:
        """Search customers with a Shopify search string (e.g. ``email:a@x.com``)."""
        data = await self.execute(CUSTOMERS_QUERY, {"first": limit, "query": query})
        return [
            CustomerRecord(
                id=node["id"],
                first_name=node.get("firstName"),
                last_name=node.get("lastName"),
                email=node.get("email"),
            )
            for node in _nodes(data.get("customers"))
        ]

    async def update_customer(self, customer_id: str, **fields: Any) -> dict:
        """Apply ``CustomerInput`` fields to the customer with numeric id *customer_id*."""
        input_ = {"id": to_gid("Customer", customer_id), **fields}
        return await self._mutate(CUSTOMER_UPDATE_MUTATION, "customerUpdate", "customer", input_)

    # ── Orders ───────────────────────────────────────────

    async def get_customer_orders(self, customer_id: str, limit: int = 10) -> list[dict]:
        """Most recent orders for the customer with numeric id *customer_id*."""
        data = await self.execute(
            ORDERS_QUERY, {"first": limit, "query": f"customer_id:{customer_id}"}
        )
        return [_format_order(node) for node in _nodes(data.get("orders"))]

    async def get_orders(self, status: str = "any", limit: int = 10) -> list[dict]:
        """Most recent orders, optionally filtered by ``open``/``closed``/``cancelled``."""
        query = None if status == "any" else f"status:{status}"
        data = await self.execute(ORDERS_QUERY, {"first": limit, "query": query})
        return [_format_order(node) for node in _nodes(data.get("orders"))]

    async def get_order_by_id(self, order_id: str) -> dict:
        data = await self.execute(ORDER_QUERY, {"id": to_gid("Order", order_id)})
        node = data.get("order")
        if not node:
            raise ShopifyAPIError(f"Order {order_id} not found")
        order = _format_order(node)
        order.update(
            email=node.get("email"),
            note=node.get("note"),
            tags=node.get("tags"),
            customer=node.get("customer"),
            shippingAddress=node.get("shippingAddress"),
        )
        return order

    async def update_order(self, order_id: str, **fields: Any) -> dict:
        """Apply ``OrderInput`` fields (tags, note, shippingAddress …) to an order."""
        input_ = {"id": to_gid("Order", order_id), **fields}
        return await self._mutate(ORDER_UPDATE_MUTATION, "orderUpdate", "order", input_)


def _nodes(connection: dict | None) -> list[dict]:
    if not connection:
        return []
    return [edge["node"] for edge in connection.get("edges", [])]


def _format_product(node: dict) -> dict:
    price = ((node.get("priceRangeV2") or {}).get("minVariantPrice")) or {}
    return {
        "id": node["id"],
        "title": node.get("title"),
        "handle": node.get("handle"),
        "description": node.get("description"),
        "status": node.get("status"),
        "vendor": node.get("vendor"),
        "productType": node.get("productType"),
        "tags": node.get("tags"),
        "totalInventory": node.get("totalInventory"),
        "price": price.get("amount"),
        "currencyCode": price.get("currencyCode"),
        "variants": _nodes(node.get("variants")),
    }


def _format_order(node: dict) -> dict:
    money = (node.get("totalPriceSet") or {}).get("shopMoney") or {}
    return {
        "id": node["id"],
        "name": node.get("name"),
        "createdAt": node.get("createdAt"),
        "financialStatus": node.get("displayFinancialStatus"),
        "fulfillmentStatus": node.get("displayFulfillmentStatus"),
        "totalPrice": money.get("amount"),
        "currencyCode": money.get("currencyCode"),
        "lineItems": [
            {"title": item["title"], "quantity": item["quantity"]}
            for item in _nodes(node.get("lineItems"))
        ],
    }
