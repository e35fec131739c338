"""Tests for session-bound reference data caches."""

import asyncio

import httpx
import pytest

from flowledger.api.client import ApiClient
from flowledger.api.token_storage import MemoryTokenStorage
from flowledger.session import SessionManager
from flowledger.stores import CategoryCache, CurrencyCache


class CurrencyBackend:
    """Serves /currencies in pages of two."""

    def __init__(self, codes, fail=False):
        self.codes = codes
        self.fail = fail
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.fail:
            return httpx.Response(500, json={"detail": "database unavailable"})
        if request.url.path == "/api/categories":
            return httpx.Response(200, json={"data": [{"id": 1, "name": "Food"}, {"id": 2, "name": "Travel"}]})
        page = int(request.url.params["page"])
        chunk = self.codes[(page - 1) * 2 : page * 2]
        return httpx.Response(
            200,
            json={"items": [{"code": c} for c in chunk], "has_next": page * 2 < len(self.codes)},
        )


@pytest.fixture
def session():
    return SessionManager(token_storage=MemoryTokenStorage())


def make_cache(cls, backend, session, page_size=2):
    client = ApiClient(
        base_url="http://test/api", token_storage=session.token_storage, transport=httpx.MockTransport(backend)
    )
    cache = cls(client, session)
    cache.page_size = page_size
    return cache


class TestCurrencyCache:
    """Test currency pagination and session binding."""

    @pytest.mark.asyncio
    async def test_fetches_every_page(self, session):
        backend = CurrencyBackend(["CNY", "EUR", "JPY", "USD", "GBP"])
        session.set_session("jwt", {"id": 1})
        cache = make_cache(CurrencyCache, backend, session)

        await cache.fetch()

        assert [c["code"] for c in cache.items] == ["CNY", "EUR", "JPY", "USD", "GBP"]
        assert cache.get("USD") == {"code": "USD"}
        assert cache.initialized
        assert len(backend.requests) == 3
        assert backend.requests[0].url.params["page_size"] == "2"

    @pytest.mark.asyncio
    async def test_skips_when_unauthenticated(self, session):
        backend = CurrencyBackend(["USD"])
        cache = make_cache(CurrencyCache, backend, session)

        await cache.fetch()

        assert backend.requests == []
        assert not cache.initialized

    @pytest.mark.asyncio
    async def test_cached_until_forced(self, session):
        backend = CurrencyBackend(["USD"])
        session.set_session("jwt", {"id": 1})
        cache = make_cache(CurrencyCache, backend, session)

        await cache.fetch()
        await cache.fetch()
        assert len(backend.requests) == 1

        await cache.fetch(force=True)
        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_error_recorded_not_raised(self, session):
        backend = CurrencyBackend(["USD"], fail=True)
        session.set_session("jwt", {"id": 1})
        cache = make_cache(CurrencyCache, backend, session)

        await cache.fetch()

        assert cache.error == "database unavailable"
        assert cache.items == []
        assert not cache.loading
        assert cache.initialized

    @pytest.mark.asyncio
    async def test_bound_cache_follows_session(self, session):
        backend = CurrencyBackend(["USD", "EUR"])
        cache = make_cache(CurrencyCache, backend, session).bind()

        session.set_session("jwt", {"id": 1})
        await asyncio.gather(*cache._pending)
        assert cache.get("EUR") is not None

        session.clear_session()
        assert cache.items == []
        assert cache.index == {}
        assert not cache.initialized

    @pytest.mark.asyncio
    async def test_unbind_stops_following(self, session):
        backend = CurrencyBackend(["USD"])
        cache = make_cache(CurrencyCache, backend, session).bind()
        cache.unbind()

        session.set_session("jwt", {"id": 1})

        assert not cache._pending
        assert backend.requests == []

    def test_login_without_loop_marks_stale(self, session):
        backend = CurrencyBackend(["USD"])
        cache = make_cache(CurrencyCache, backend, session).bind()
        cache.initialized = True

        session.set_session("jwt", {"id": 1})

        assert not cache.initialized
        assert backend.requests == []


class TestCategoryCache:
    @pytest.mark.asyncio
    async def test_keyed_by_name(self, session):
        backend = CurrencyBackend([])
        session.set_session("jwt", {"id": 1})
        cache = make_cache(CategoryCache, backend, session)

        await cache.fetch()

        assert cache.get("Travel") == {"id": 2, "name": "Travel"}
        assert backend.requests[0].headers["Authorization"] == "Bearer jwt"


class GatedCurrencyCache(CurrencyCache):
    """Currency cache whose backend read blocks until ``gate`` is set."""

    def __init__(self, client, session, items):
        super().__init__(client, session)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self._items = items

    async def _fetch_all(self):
        self.started.set()
        await self.gate.wait()
        return list(self._items)


class TestCacheSessionBoundary:
    """A fetch in flight when the session ends must not repopulate the cache."""

    @pytest.mark.asyncio
    async def test_logout_during_fetch_discards_result(self, session):
        session.set_session("jwt", {"id": 1})
        cache = GatedCurrencyCache(None, session, [{"code": "USD"}])

        fetch = asyncio.ensure_future(cache.fetch(force=True))
        await cache.started.wait()
        cache.bind()
        session.clear_session()
        cache.gate.set()
        await fetch

        assert cache.items == []
        assert cache.get("USD") is None
        assert not cache.initialized
        assert not cache.loading

    @pytest.mark.asyncio
    async def test_relogin_during_stale_fetch_keeps_new_session_clean(self, session):
        session.set_session("jwt-alice", {"id": 1})
        cache = GatedCurrencyCache(None, session, [{"code": "ALICE"}])

        stale = asyncio.ensure_future(cache.fetch())
        await cache.started.wait()
        cache.clear()
        session.set_session("jwt-bob", {"id": 2})
        cache.gate.set()
        await stale

        assert cache.get("ALICE") is None
        assert not cache.initialized

        cache._items = [{"code": "BOB"}]
        await cache.fetch()
        assert cache.get("BOB") == {"code": "BOB"}

    @pytest.mark.asyncio
    async def test_session_expiry_during_fetch_discards_result(self):
        now = [0.0]
        session = SessionManager(token_storage=MemoryTokenStorage(), clock=lambda: now[0])
        session.set_session("jwt", {"id": 1}, expires_in_seconds=10)
        cache = GatedCurrencyCache(None, session, [{"code": "USD"}])

        fetch = asyncio.ensure_future(cache.fetch())
        await cache.started.wait()
        now[0] = 20.0
        cache.gate.set()
        await fetch

        assert cache.items == []
        assert not cache.loading
