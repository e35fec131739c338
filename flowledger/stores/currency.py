"""Currency list cache."""

from typing import Any, Dict, List

from flowledger.api import currency as currency_api
from flowledger.core import constants
from flowledger.stores.base import AuthBoundCache


class CurrencyCache(AuthBoundCache[Dict[str, Any]]):
    """All currencies, keyed by ISO 4217 code. Walks every page."""

    page_size = constants.CURRENCY_PAGE_SIZE

    async def _fetch_all(self) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            res = await currency_api.list_currencies(self.client, page=page, page_size=self.page_size)
            items.extend(res.get("items", []))
            if not res.get("has_next"):
                break
            page += 1
        return items

    def _key(self, item: Dict[str, Any]) -> str:
        return item["code"]
