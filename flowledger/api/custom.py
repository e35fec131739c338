"""Aggregated dashboard endpoints."""

from typing import Any, Dict, Optional

from flowledger.api.client import ApiClient


async def list_institution_asset_changes(client: ApiClient, limit: Optional[int] = None) -> Dict[str, Any]:
    """Per-institution totals compared with the previous snapshot."""
    return await client.get("/custom/institutions/assets/changes", params={"limit": limit})
