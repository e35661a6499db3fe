from recipe_journal.app.services.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_get_returns_stored_value():
    cache = TTLCache(prefix="test")
    cache.set("a", {"value": 1})
    assert cache.get("a") == {"value": 1}
    assert "a" in cache
    assert cache.get("missing") is None


def test_expired_entries_are_dropped_on_read():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=60, prefix="test", clock=clock)
    cache.set("a", 1)
    clock.advance(59)
    assert cache.get("a") == 1
    clock.advance(1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_entries_without_ttl_never_expire():
    clock = FakeClock()
    cache = TTLCache(prefix="test", clock=clock)
    cache.set("a", 1)
    clock.advance(10 ** 9)
    assert cache.get("a") == 1


def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, prefix="test", clock=clock)
    cache.set("old", 1)
    clock.advance(5)
    cache.set("new", 2)
    clock.advance(6)
    assert cache.sweep() == 1
    assert cache.get("old") is None
    assert cache.get("new") == 2


def test_full_cache_evicts_oldest_entry():
    clock = FakeClock()
    cache = TTLCache(max_entries=2, prefix="test", clock=clock)
    cache.set("first", 1)
    clock.advance(1)
    cache.set("second", 2)
    clock.advance(1)
    cache.set("third", 3)
    assert len(cache) == 2
    assert cache.get("first") is None
    assert cache.get("second") == 2
    assert cache.get("third") == 3


def test_full_cache_prefers_sweeping_expired_entries():
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, max_entries=2, prefix="test", clock=clock)
    cache.set("first", 1)
    clock.advance(8)
    cache.set("second", 2)
    clock.advance(3)
    cache.set("third", 3)
    assert cache.get("second") == 2
    assert cache.get("third") == 3


def test_overwriting_existing_key_does_not_evict():
    cache = TTLCache(max_entries=2, prefix="test", clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_delete_clear_and_stats():
    clock = FakeClock()
    cache = TTLCache(max_entries=5, prefix="stats", clock=clock)
    cache.set("a", 1)
    clock.advance(1)
    cache.set("b", 2)

    stats = cache.stats()
    assert stats.prefix == "stats"
    assert stats.entries == 2
    assert stats.max_entries == 5
    assert stats.oldest_key == "a"

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert cache.stats().entries == 0
    assert cache.stats().oldest_key is None


def test_zero_max_entries_means_unbounded():
    cache = TTLCache(max_entries=0, prefix="test")
    for idx in range(50):
        cache.set(str(idx), idx)
    assert len(cache) == 50
