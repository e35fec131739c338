"""Session-bound reference data caches."""

from .base import AuthBoundCache
from .categories import CategoryCache
from .currency import CurrencyCache

__all__ = ["AuthBoundCache", "CategoryCache", "CurrencyCache"]
