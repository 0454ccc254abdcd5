"""Reshape raw WooCommerce resources into the client's list views."""

from datetime import datetime


def _to_float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def billing_name(billing: dict | None) -> str:
    if not isinstance(billing, dict):
        return ""
    return f"{billing.get('first_name') or ''} {billing.get('last_name') or ''}".strip()


def map_order(order: dict) -> dict:
    billing = order.get("billing")
    if not isinstance(billing, dict):
        billing = {}
    created = order.get("date_created")
    try:
        date = datetime.fromisoformat(created).isoformat() if created else None
    except ValueError:
        date = created
    return {
        "id": order.get("id"),
        "customer_id": order.get("customer_id"),
        "customer": billing_name(billing) or "Guest",
        "billing_email": billing.get("email") or None,
        "total": _to_float(order.get("total")),
        "status": order.get("status"),
        "date": date,
        "items": len(order.get("line_items") or []),
        "line_items": order.get("line_items") or [],
        "billing": billing,
        "shipping": order.get("shipping") or {},
        "payment_method": order.get("payment_method"),
        "payment_method_title": order.get("payment_method_title"),
        "transaction_id": order.get("transaction_id") or None,
        "currency_symbol": order.get("currency_symbol"),
        "shipping_total": _to_float(order.get("shipping_total")),
        "discount_total": _to_float(order.get("discount_total")),
    }


def map_product(product: dict) -> dict:
    images = product.get("images") or []
    return {
        "id": product.get("id"),
        "name": product.get("name"),
        "price": _to_float(product.get("price")),
        "stock": product.get("stock_quantity") or 0,
        "status": product.get("stock_status") or "instock",
        "post_status": product.get("status"),
        "categories": product.get("categories") or [],
        "sku": product.get("sku") or None,
        "image": images[0].get("src") if images else None,
    }


def map_customer(customer: dict) -> dict:
    billing = customer.get("billing") or {}
    name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
    return {
        "id": customer.get("id"),
        "name": name or customer.get("username") or "Customer",
        "email": customer.get("email") or "",
        "phone": billing.get("phone") or "",
        "date_created": customer.get("date_created"),
        "is_paying_customer": bool(customer.get("is_paying_customer")),
        "avatar_url": customer.get("avatar_url"),
        "billing": billing,
        "shipping": customer.get("shipping") or {},
    }


def enrich_customers(customers: list[dict], orders: list[dict]) -> list[dict]:
    """Attach `total_spent` / `orders_count` summed from mapped orders.

    Orders are matched by customer id, guests by lower-cased billing email.
    """

    stats: dict[str, dict] = {}
    for order in orders:
        if order.get("customer_id"):
            key = f"id:{order['customer_id']}"
        elif order.get("billing_email"):
            key = f"email:{order['billing_email'].lower()}"
        else:
            continue
        entry = stats.setdefault(key, {"total_spent": 0.0, "orders_count": 0})
        entry["total_spent"] += _to_float(order.get("total"))
        entry["orders_count"] += 1

    enriched = []
    for customer in customers:
        found = None
        if customer.get("id"):
            found = stats.get(f"id:{customer['id']}")
        if found is None and customer.get("email"):
            found = stats.get(f"email:{customer['email'].lower()}")
        enriched.append(
            {
                **customer,
                "total_spent": found["total_spent"] if found else 0,
                "orders_count": found["orders_count"] if found else 0,
            }
        )
    return enriched


def map_sales_report(raw: dict | None) -> dict | None:
    if not raw:
        return None
    return {
        "total_sales": _to_float(raw.get("total_sales")),
        "net_sales": _to_float(raw.get("net_sales")),
        "average_sales": _to_float(raw.get("average_sales")),
        "total_orders": raw.get("total_orders") or 0,
        "total_items": raw.get("total_items") or 0,
        "total_tax": _to_float(raw.get("total_tax")),
        "total_shipping": _to_float(raw.get("total_shipping")),
        "total_refunds": raw.get("total_refunds") or 0,
        "total_discount": _to_float(raw.get("total_discount")),
        "totals_grouped_by": raw.get("totals_grouped_by"),
        "totals": raw.get("totals") or {},
    }
