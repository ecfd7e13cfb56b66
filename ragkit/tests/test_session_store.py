"""Tests for SessionStore: overwrite semantics, LRU bound, TTL expiry."""

import pytest
from pydantic import ValidationError

from ragkit.common.schemas import ScoredDocument
from ragkit.common.session_store import SessionStore, mint_session_id


def _doc(doc_id: int, score: float = 1.0) -> ScoredDocument:
    return ScoredDocument(id=doc_id, title=f"Doc {doc_id}", content="body", tags=["t"], score=score)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSessionStoreBasics:
    def test_get_unknown_returns_none(self):
        store = SessionStore()
        assert store.get("missing") is None

    def test_put_then_get_preserves_order(self):
        store = SessionStore()
        store.put("s1", [_doc(3), _doc(1), _doc(2)])
        assert [d.id for d in store.get("s1")] == [3, 1, 2]

    def test_put_overwrites_instead_of_merging(self):
        store = SessionStore()
        store.put("s1", [_doc(1), _doc(2)])
        store.put("s1", [_doc(9)])
        assert [d.id for d in store.get("s1")] == [9]

    def test_empty_context_is_stored(self):
        store = SessionStore()
        store.put("s1", [_doc(1)])
        store.put("s1", [])
        assert store.get("s1") == ()
        assert len(store) == 1

    def test_stored_context_is_a_snapshot(self):
        store = SessionStore()
        docs = [_doc(1)]
        store.put("s1", docs)
        docs.append(_doc(2))
        assert len(store.get("s1")) == 1
        assert isinstance(store.get("s1"), tuple)

    def test_stored_documents_cannot_be_modified_by_readers(self):
        store = SessionStore()
        store.put("s1", [_doc(1)])
        stored = store.get("s1")[0]

        assert stored.tags == ("t",)
        with pytest.raises(AttributeError):
            stored.tags.append("tampered")
        with pytest.raises(ValidationError):
            stored.title = "changed"
        assert store.get("s1")[0].tags == ("t",)

    def test_contains_and_clear(self):
        store = SessionStore()
        store.put("s1", [_doc(1)])
        assert "s1" in store
        store.clear()
        assert "s1" not in store
        assert len(store) == 0

    def test_invalid_bounds_rejected(self):
        with pytest.raises(ValueError):
            SessionStore(capacity=0)
        with pytest.raises(ValueError):
            SessionStore(ttl_seconds=-1)


class TestSessionStoreEviction:
    def test_capacity_evicts_least_recently_used(self):
        evicted = []
        store = SessionStore(capacity=2, on_evict=lambda sid, reason: evicted.append((sid, reason)))
        store.put("a", [_doc(1)])
        store.put("b", [_doc(2)])
        store.get("a")  # a is now most recent
        store.put("c", [_doc(3)])

        assert store.get("b") is None
        assert store.get("a") is not None
        assert store.get("c") is not None
        assert evicted == [("b", "capacity")]

    def test_overwrite_does_not_evict(self):
        evicted = []
        store = SessionStore(capacity=2, on_evict=lambda sid, reason: evicted.append(sid))
        store.put("a", [_doc(1)])
        store.put("b", [_doc(2)])
        store.put("a", [_doc(3)])
        assert len(store) == 2
        assert evicted == []

    def test_ttl_expiry(self):
        clock = FakeClock()
        evicted = []
        store = SessionStore(ttl_seconds=60, clock=clock, on_evict=lambda sid, reason: evicted.append((sid, reason)))
        store.put("s1", [_doc(1)])

        clock.now += 59
        assert store.get("s1") is not None

        clock.now += 1
        assert store.get("s1") is None
        assert evicted == [("s1", "expired")]
        assert len(store) == 0

    def test_ttl_counts_from_last_put(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=60, clock=clock)
        store.put("s1", [_doc(1)])
        clock.now += 50
        store.put("s1", [_doc(2)])
        clock.now += 50
        assert [d.id for d in store.get("s1")] == [2]

    def test_zero_ttl_never_expires(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=0, clock=clock)
        store.put("s1", [_doc(1)])
        clock.now += 10 ** 9
        assert store.get("s1") is not None
        assert store.purge_expired() == 0

    def test_purge_expired(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.put("old", [_doc(1)])
        clock.now += 5
        store.put("new", [_doc(2)])
        clock.now += 6
        assert store.purge_expired() == 1
        assert store.get("old") is None
        assert store.get("new") is not None


class TestMintSessionId:
    def test_format(self):
        sid = mint_session_id()
        assert sid.startswith("session_")
        assert len(sid) == len("session_") + 32

    def test_unique(self):
        ids = {mint_session_id() for _ in range(1000)}
        assert len(ids) == 1000
