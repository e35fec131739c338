"""Expense and category endpoints."""

from typing import Any, Dict, List, Optional

from flowledger.api.client import ApiClient


async def create_expense(
    client: ApiClient, payload: Dict[str, Any], idempotency_key: Optional[str] = None
) -> Dict[str, Any]:
    return await client.post("/expenses", payload, idempotency_key=idempotency_key)


async def create_expense_batch(client: ApiClient, items: List[Dict[str, Any]]) -> Any:
    """Create several expenses at once (e.g. the lines of a recognized receipt)."""
    return await client.post("/expenses/batch", {"items": items})


async def list_expenses(
    client: ApiClient,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> Dict[str, Any]:
    """List expenses, paginated, optionally within an ISO date-time range."""
    params = {"page": page, "page_size": page_size, "from": date_from, "to": date_to}
    return await client.get("/expenses", params=params)


async def get_expense(client: ApiClient, expense_id: int) -> Dict[str, Any]:
    return await client.get(f"/expenses/{expense_id}")


async def update_expense(client: ApiClient, expense_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await client.patch(f"/expenses/{expense_id}", payload)


async def delete_expense(client: ApiClient, expense_id: int) -> Dict[str, Any]:
    return await client.delete(f"/expenses/{expense_id}")


async def list_categories(client: ApiClient) -> Dict[str, Any]:
    return await client.get("/categories")


async def create_category(
    client: ApiClient, name: str, idempotency_key: Optional[str] = None
) -> Dict[str, Any]:
    return await client.post("/categories", {"name": name}, idempotency_key=idempotency_key)
