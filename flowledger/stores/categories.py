"""Expense category cache."""

from typing import Any, Dict, List

from flowledger.api import expenses as expenses_api
from flowledger.stores.base import AuthBoundCache


class CategoryCache(AuthBoundCache[Dict[str, Any]]):
    """Expense categories keyed by name (receipt items reference categories by name)."""

    async def _fetch_all(self) -> List[Dict[str, Any]]:
        res = await expenses_api.list_categories(self.client)
        return list(res.get("data", []))

    def _key(self, item: Dict[str, Any]) -> str:
        return item["name"]
