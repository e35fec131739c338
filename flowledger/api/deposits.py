"""Institution, product and balance endpoints.

Deletes are soft by default. The backend requires an explicit
``X-Confirm-Delete`` header: ``YES`` for soft deletes, ``HARD-YES`` for
hard deletes.
"""

from typing import Any, Dict, List, Optional

from flowledger.api.client import ApiClient


def _confirm_delete_headers(hard: bool) -> Dict[str, str]:
    return {"X-Confirm-Delete": "HARD-YES" if hard else "YES"}


# Institutions

async def list_institutions(
    client: ApiClient,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    name: Optional[str] = None,
    type: Optional[str] = None,
) -> Dict[str, Any]:
    return await client.get("/institutions", params={"page": page, "page_size": page_size, "name": name, "type": type})


async def create_institution(
    client: ApiClient, name: str, type: str, idempotency_key: Optional[str] = None
) -> Dict[str, Any]:
    return await client.post("/institutions", {"name": name, "type": type}, idempotency_key=idempotency_key)


async def update_institution(client: ApiClient, institution_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await client.patch(f"/institutions/{institution_id}", payload)


async def delete_institution(client: ApiClient, institution_id: int, hard: bool = False) -> Dict[str, Any]:
    return await client.delete(
        f"/institutions/{institution_id}", params={"hard": hard}, headers=_confirm_delete_headers(hard)
    )


# Products

async def list_products(
    client: ApiClient,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    **filters: Any,
) -> Dict[str, Any]:
    """List products; filters: institution_id, product_type, status, risk_level, currency."""
    return await client.get("/products", params={"page": page, "page_size": page_size, **filters})


async def create_product(
    client: ApiClient, payload: Dict[str, Any], idempotency_key: Optional[str] = None
) -> Dict[str, Any]:
    return await client.post("/products", payload, idempotency_key=idempotency_key)


async def update_product(client: ApiClient, product_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await client.patch(f"/products/{product_id}", payload)


async def update_product_status(client: ApiClient, product_id: int, status: str) -> Dict[str, Any]:
    return await client.patch(f"/products/{product_id}/status", {"status": status})


async def delete_product(client: ApiClient, product_id: int, hard: bool = False) -> Dict[str, Any]:
    return await client.delete(f"/products/{product_id}", params={"hard": hard}, headers=_confirm_delete_headers(hard))


# Balances

async def list_product_balances(
    client: ApiClient,
    product_id: int,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> Dict[str, Any]:
    params = {"page": page, "page_size": page_size, "from": date_from, "to": date_to}
    return await client.get(f"/products/{product_id}/balances", params=params)


async def create_balance(client: ApiClient, product_id: int, amount: str, as_of: str) -> Dict[str, Any]:
    return await client.post(f"/products/{product_id}/balances", {"amount": amount, "as_of": as_of})


async def create_latest_balances(
    client: ApiClient, institution_id: int, items: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """Write the latest balance snapshot for several products of one institution."""
    return await client.post(f"/institutions/{institution_id}/products/balances/latest", {"items": items})
