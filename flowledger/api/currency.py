"""Currency, exchange-rate and conversion endpoints."""

from typing import Any, Dict, List, Optional

from flowledger.api.client import ApiClient


async def list_currencies(
    client: ApiClient,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    code: Optional[str] = None,
    q: Optional[str] = None,
    sort: Optional[str] = None,
) -> Dict[str, Any]:
    params = {"page": page, "page_size": page_size, "code": code, "q": q, "sort": sort}
    return await client.get("/currencies", params=params)


async def upsert_currency(client: ApiClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await client.post("/currencies", payload)


async def get_currency(client: ApiClient, code: str) -> Dict[str, Any]:
    return await client.get(f"/currencies/{code}")


async def update_currency(client: ApiClient, code: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await client.patch(f"/currencies/{code}", payload)


async def bulk_upsert_currencies(client: ApiClient, payload: List[Dict[str, Any]]) -> Dict[str, Any]:
    return await client.put("/currencies/bulk", payload)


async def get_exchange_rates(
    client: ApiClient, base: str, quote: Optional[str] = None, date: Optional[str] = None
) -> Dict[str, Any]:
    """Single rate when ``quote`` is given, otherwise a map of quote -> rate."""
    return await client.get("/exchange-rates", params={"base": base, "quote": quote, "date": date})


async def trigger_exchange_rate_sync(client: ApiClient) -> Dict[str, Any]:
    return await client.post("/exchange-rates/sync")


async def convert_currency(
    client: ApiClient,
    amount: str,
    from_currency: str,
    to_currency: str,
    date: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Convert a decimal-string amount between currencies."""
    payload = {"amount": amount, "from": from_currency, "to": to_currency}
    if date:
        payload["date"] = date
    return await client.post("/convert", payload, idempotency_key=idempotency_key)
