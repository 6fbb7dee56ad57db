from attractions.cache import TTLCache
from tests.conftest import FakeClock


def test_entry_expires_after_ttl() -> None:
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)

    cache.set("rate", 42.0)
    clock.advance(59)
    assert cache.get("rate") == 42.0

    clock.advance(1)
    assert cache.get("rate") is None
    assert len(cache) == 0


def test_per_entry_ttl_overrides_default() -> None:
    clock = FakeClock()
    cache = TTLCache(default_ttl=60, clock=clock)

    cache.set("short", 1, ttl=5)
    cache.set("long", 2)
    clock.advance(10)

    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_set_sweeps_expired_entries() -> None:
    clock = FakeClock()
    cache = TTLCache(default_ttl=10, clock=clock)

    cache.set("a", 1)
    cache.set("b", 2)
    clock.advance(11)
    cache.set("c", 3)

    assert len(cache) == 1


def test_delete_and_clear() -> None:
    cache = TTLCache()

    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0
