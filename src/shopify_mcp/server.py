"""MCP server — exposes the OTP flow and Shopify operations as tools."""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import EmailStr, Field

from shopify_mcp.auth.errors import InvalidOrExpiredOTP
from shopify_mcp.auth.gate import SessionGate
from shopify_mcp.auth.otp import OTPIssuer, OTPVerifier
from shopify_mcp.schemas import CustomAttribute, MetafieldInput, ShippingAddress
from shopify_mcp.services.shopify_client import ShopifyAPIError, ShopifyClient

logger = logging.getLogger(__name__)

CustomerId = Annotated[
    str,
    Field(pattern=r"^\d+$", description="Shopify customer ID, numeric excluding gid prefix"),
]
NonEmpty = Annotated[str, Field(min_length=1)]


async def _shopify_call(
    key: str, operation: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
) -> dict:
    """Run a client call and wrap its result as ``{key: result}`` or ``{"error": ...}``."""
    try:
        result = await operation(*args, **kwargs)
    except ShopifyAPIError as exc:
        return {"error": str(exc)}
    return {key: result}


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _dump_all(items: list | None) -> list[dict] | None:
    if items is None:
        return None
    return [item.dump() for item in items]


def create_mcp_server(
    issuer: OTPIssuer,
    verifier: OTPVerifier,
    gate: SessionGate,
    shopify: ShopifyClient,
) -> FastMCP:
    """Build the ``FastMCP`` instance with every tool registered.

    Tools never raise: failures come back as ``{"error": message}``.
    """
    mcp = FastMCP(
        "shopify",
        instructions=(
            "MCP Server for the Shopify Admin API. Customers verify their email "
            "with request-otp / verify-otp before reading their orders."
        ),
    )

    async def customer_orders(customer_id: str, limit: int = 10) -> dict:
        return await _shopify_call("orders", shopify.get_customer_orders, customer_id, limit)

    gated_customer_orders = gate.protect(customer_orders)

    # ── OTP flow ─────────────────────────────────────────

    @mcp.tool(name="request-otp", description="Email a 6-digit verification code.")
    async def request_otp(email: EmailStr) -> dict:
        result = await issuer.issue(str(email))
        if not result.success:
            return {"error": result.message}
        return {"message": result.message}

    @mcp.tool(
        name="verify-otp",
        description="Verify an emailed code; returns a session token and recent orders.",
    )
    async def verify_otp(email: EmailStr, code: str) -> dict:
        try:
            result = await verifier.verify(str(email), code)
        except InvalidOrExpiredOTP as exc:
            return {"error": exc.message}
        return result.to_dict()

    # ── Products ─────────────────────────────────────────

    @mcp.tool(name="get-products", description="List products, optionally by title.")
    async def get_products(search_title: str | None = None, limit: int = 10) -> dict:
        return await _shopify_call("products", shopify.get_products, search_title, limit)

    @mcp.tool(name="get-product-by-id", description="Get one product by ID.")
    async def get_product_by_id(product_id: NonEmpty) -> dict:
        return await _shopify_call("product", shopify.get_product_by_id, product_id)

    @mcp.tool(name="create-product", description="Create a product (DRAFT by default).")
    async def create_product(
        title: NonEmpty,
        description_html: str | None = None,
        vendor: str | None = None,
        product_type: str | None = None,
        tags: list[str] | None = None,
        status: Literal["ACTIVE", "DRAFT", "ARCHIVED"] = "DRAFT",
    ) -> dict:
        fields = _compact(
            {
                "title": title,
                "descriptionHtml": description_html,
                "vendor": vendor,
                "productType": product_type,
                "tags": tags,
                "status": status,
            }
        )
        return await _shopify_call("product", shopify.create_product, **fields)

    # ── Customers ────────────────────────────────────────

    @mcp.tool(name="get-customers", description="Search customers by name or email.")
    async def get_customers(search_query: str | None = None, limit: int = 10) -> dict:
        try:
            customers = await shopify.find_customers(search_query, limit)
        except ShopifyAPIError as exc:
            return {"error": str(exc)}
        return {
            "customers": [
                {
                    "id": c.id,
                    "firstName": c.first_name,
                    "lastName": c.last_name,
                    "email": c.email,
                }
                for c in customers
            ]
        }

    @mcp.tool(name="update-customer", description="Update a customer's details.")
    async def update_customer(
        id: CustomerId,
        first_name: str | None = None,
        last_name: str | None = None,
        email: EmailStr | None = None,
        phone: str | None = None,
        tags: list[str] | None = None,
        note: str | None = None,
        tax_exempt: bool | None = None,
        metafields: list[MetafieldInput] | None = None,
    ) -> dict:
        fields = _compact(
            {
                "firstName": first_name,
                "lastName": last_name,
                "email": str(email) if email else None,
                "phone": phone,
                "tags": tags,
                "note": note,
                "taxExempt": tax_exempt,
                "metafields": _dump_all(metafields),
            }
        )
        return await _shopify_call("customer", shopify.update_customer, id, **fields)

    # ── Orders ───────────────────────────────────────────

    @mcp.tool(
        name="get-customer-orders",
        description="List a customer's orders. Requires a token from verify-otp.",
    )
    async def get_customer_orders(token: str, customer_id: CustomerId, limit: int = 10) -> dict:
        return await gated_customer_orders(token=token, customer_id=customer_id, limit=limit)

    @mcp.tool(name="get-orders", description="List recent orders, optionally by status.")
    async def get_orders(
        status: Literal["any", "open", "closed", "cancelled"] = "any", limit: int = 10
    ) -> dict:
        return await _shopify_call("orders", shopify.get_orders, status, limit)

    @mcp.tool(name="get-order-by-id", description="Get one order by ID.")
    async def get_order_by_id(order_id: NonEmpty) -> dict:
        return await _shopify_call("order", shopify.get_order_by_id, order_id)

    @mcp.tool(name="update-order", description="Update an order's tags, note, email or address.")
    async def update_order(
        id: NonEmpty,
        tags: list[str] | None = None,
        email: EmailStr | None = None,
        note: str | None = None,
        custom_attributes: list[CustomAttribute] | None = None,
        metafields: list[MetafieldInput] | None = None,
        shipping_address: ShippingAddress | None = None,
    ) -> dict:
        fields = _compact(
            {
                "tags": tags,
                "email": str(email) if email else None,
                "note": note,
                "customAttributes": _dump_all(custom_attributes),
                "metafields": _dump_all(metafields),
                "shippingAddress": shipping_address.dump() if shipping_address else None,
            }
        )
        return await _shopify_call("order", shopify.update_order, id, **fields)

    logger.debug("MCP server created")
    return mcp
