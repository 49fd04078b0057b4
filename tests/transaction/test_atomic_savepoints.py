from __future__ import annotations

import pytest

from grant_import.transaction import atomic
from grant_import.transaction.state import _get_state


class SpyStore:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def savepoint(self, name: str) -> None:
        self.calls.append(("savepoint", name))

    def rollback(self, *, save_point: str | None = None) -> None:
        self.calls.append(("rollback", save_point))

    def release_savepoint(self, name: str) -> None:
        self.calls.append(("release", name))


def test_atomic_happy_path_uses_savepoint_and_release():
    store = SpyStore()

    with atomic(store):
        pass

    assert store.calls == [("savepoint", "grant_import_sp_1"), ("release", "grant_import_sp_1")]


def test_atomic_rolls_back_to_savepoint_on_exception():
    store = SpyStore()

    with pytest.raises(RuntimeError):
        with atomic(store):
            raise RuntimeError("boom")

    assert store.calls == [("savepoint", "grant_import_sp_1"), ("rollback", "grant_import_sp_1")]


def test_atomic_nested_inner_exception_rolls_back_once():
    store = SpyStore()

    with pytest.raises(ValueError):
        with atomic(store):
            with atomic(store):
                raise ValueError("inner")

    assert store.calls == [
        ("savepoint", "grant_import_sp_1"),
        ("savepoint", "grant_import_sp_2"),
        ("rollback", "grant_import_sp_2"),
    ]


def test_atomic_nested_success_releases_inner_first():
    store = SpyStore()

    with atomic(store):
        with atomic(store):
            pass

    assert [call for call in store.calls if call[0] == "release"] == [
        ("release", "grant_import_sp_2"),
        ("release", "grant_import_sp_1"),
    ]


def test_atomic_decorator_behaves_like_context_manager():
    store = SpyStore()

    @atomic(store)
    def fail():
        raise KeyError("x")

    with pytest.raises(KeyError):
        fail()

    assert ("rollback", "grant_import_sp_1") in store.calls


def test_state_is_reset_after_outer_block():
    store = SpyStore()

    with pytest.raises(RuntimeError):
        with atomic(store):
            raise RuntimeError("boom")

    state = _get_state(store)
    assert state.depth == 0
    assert state.savepoints == []
    assert state.error_rolled_back is False

    with pytest.raises(RuntimeError):
        with atomic(store):
            raise RuntimeError("again")

    assert store.calls.count(("rollback", "grant_import_sp_1")) == 2


def test_state_is_per_store():
    first, second = SpyStore(), SpyStore()

    with atomic(first):
        with atomic(second):
            pass

    assert second.calls[0] == ("savepoint", "grant_import_sp_1")
