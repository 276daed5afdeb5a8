"""Tests for specview.store -- the reload state machine."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx
import pytest

from specview.exceptions import LoadError
from specview.models import DocumentSource, LoaderOptions, SpecFormat
from specview.store import (
    TRANSITIONS,
    InvalidTransitionError,
    LoadEvent,
    LoadStatus,
    SpecState,
    SpecStore,
    compute_signature,
    transition,
)


def _source(title: str, **extra: Any) -> DocumentSource:
    return DocumentSource(document={"openapi": "3.0.3", "info": {"title": title}, **extra})


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class FakeLoader:
    """Stands in for load_document; records calls and can hold loads open."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}

    async def __call__(self, source: DocumentSource, options: Optional[LoaderOptions] = None):
        title = source.document["info"]["title"]
        self.calls.append(title)
        gate = self.gates.get(title)
        if gate is not None:
            await gate.wait()
        if source.document.get("x-fail"):
            raise LoadError(f"Failed to load {title}")
        if source.document.get("x-crash"):
            raise RuntimeError(f"loader crashed on {title}")
        return source.document


@pytest.fixture
def loader(monkeypatch: pytest.MonkeyPatch) -> FakeLoader:
    fake = FakeLoader()
    monkeypatch.setattr("specview.store.load_document", fake)
    return fake


class TestTransitions:
    def test_table(self) -> None:
        assert transition(LoadStatus.IDLE, LoadEvent.SOURCE_CHANGED) == LoadStatus.LOADING
        assert transition(LoadStatus.LOADING, LoadEvent.LOAD_SUCCEEDED) == LoadStatus.LOADED
        assert transition(LoadStatus.LOADING, LoadEvent.LOAD_FAILED) == LoadStatus.ERROR
        assert transition(LoadStatus.ERROR, LoadEvent.SOURCE_CHANGED) == LoadStatus.LOADING

    def test_every_status_can_start_loading(self) -> None:
        for status in LoadStatus:
            assert TRANSITIONS[(status, LoadEvent.SOURCE_CHANGED)] == LoadStatus.LOADING

    def test_invalid_transition_raises(self) -> None:
        with pytest.raises(InvalidTransitionError):
            transition(LoadStatus.LOADED, LoadEvent.LOAD_SUCCEEDED)
        with pytest.raises(InvalidTransitionError):
            transition(LoadStatus.IDLE, LoadEvent.LOAD_FAILED)


class TestSignature:
    def test_fetcher_excluded(self) -> None:
        source = _source("A")
        plain = compute_signature(source, LoaderOptions())
        with_fetcher = compute_signature(source, LoaderOptions(fetcher=httpx.AsyncClient()))
        assert plain == with_fetcher

    def test_key_order_does_not_matter(self) -> None:
        first = DocumentSource(document={"a": 1, "b": 2})
        second = DocumentSource(document={"b": 2, "a": 1})
        assert compute_signature(first, LoaderOptions()) == compute_signature(second, LoaderOptions())

    def test_options_change_signature(self) -> None:
        source = _source("A")
        assert compute_signature(source, LoaderOptions()) != compute_signature(
            source, LoaderOptions(format=SpecFormat.YAML)
        )


class TestSpecStore:
    def test_construction_is_idle(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        assert store.state == SpecState(status=LoadStatus.IDLE)
        assert loader.calls == []

    @pytest.mark.asyncio
    async def test_update_loads(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        state = await store.update()
        assert state.status == LoadStatus.LOADED
        assert state.data is not None
        assert state.data.info.title == "A"
        assert state.error is None
        assert state.signature == store.signature

    @pytest.mark.asyncio
    async def test_unchanged_signature_does_not_reload(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        await store.update()
        await store.update(_source("A"))
        await store.update()
        assert loader.calls == ["A"]

    @pytest.mark.asyncio
    async def test_reload_forces_load(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        await store.update()
        await store.reload()
        assert loader.calls == ["A", "A"]

    @pytest.mark.asyncio
    async def test_concurrent_reloads_share_one_load(self, loader: FakeLoader) -> None:
        loader.gates["A"] = asyncio.Event()
        store = SpecStore(_source("A"))

        first = asyncio.create_task(store.reload())
        await _settle()
        second = asyncio.create_task(store.reload())
        await _settle()
        loader.gates["A"].set()

        first_state, second_state = await asyncio.gather(first, second)
        assert loader.calls == ["A"]
        assert first_state is second_state
        assert first_state.status == LoadStatus.LOADED

    @pytest.mark.asyncio
    async def test_reload_keeps_stale_data_visible(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        loaded = await store.update()
        loader.gates["A"] = asyncio.Event()

        pending = asyncio.create_task(store.reload())
        await _settle()
        assert store.state.status == LoadStatus.LOADING
        assert store.state.data is loaded.data

        loader.gates["A"].set()
        state = await pending
        assert state.status == LoadStatus.LOADED
        assert state.data is not loaded.data

    @pytest.mark.asyncio
    async def test_source_change_clears_data_while_loading(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        await store.update()
        loader.gates["B"] = asyncio.Event()

        pending = asyncio.create_task(store.update(_source("B")))
        await _settle()
        assert store.state.status == LoadStatus.LOADING
        assert store.state.data is None

        loader.gates["B"].set()
        state = await pending
        assert state.data.info.title == "B"

    @pytest.mark.asyncio
    async def test_superseded_result_discarded(self, loader: FakeLoader) -> None:
        loader.gates["A"] = asyncio.Event()
        store = SpecStore(_source("A"))

        slow = asyncio.create_task(store.update())
        await _settle()
        assert loader.calls == ["A"]

        fast = await store.update(_source("B"))
        assert fast.data.info.title == "B"

        loader.gates["A"].set()
        await slow
        assert store.state.status == LoadStatus.LOADED
        assert store.state.data.info.title == "B"

    @pytest.mark.asyncio
    async def test_failure_drops_data(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        await store.update()

        state = await store.update(_source("Broken", **{"x-fail": True}))
        assert state.status == LoadStatus.ERROR
        assert state.data is None
        assert state.error == "Failed to load Broken"

        recovered = await store.update(_source("A"))
        assert recovered.status == LoadStatus.LOADED
        assert recovered.error is None

    @pytest.mark.asyncio
    async def test_unexpected_exception_ends_in_error(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("Crash", **{"x-crash": True}))
        state = await store.update()
        assert state.status == LoadStatus.ERROR
        assert state.error == "loader crashed on Crash"
        assert state.data is None

        assert (await store.update()).status == LoadStatus.ERROR
        recovered = await store.update(_source("A"))
        assert recovered.status == LoadStatus.LOADED

    @pytest.mark.asyncio
    async def test_real_loader_error(self, tmp_path) -> None:
        from specview.models import FileSource

        store = SpecStore(FileSource(path=str(tmp_path / "missing.json")))
        state = await store.update()
        assert state.status == LoadStatus.ERROR
        assert "not found" in state.error

    @pytest.mark.asyncio
    async def test_listeners(self, loader: FakeLoader) -> None:
        store = SpecStore(_source("A"))
        seen: list[LoadStatus] = []
        unsubscribe = store.subscribe(lambda state: seen.append(state.status))

        await store.update()
        assert seen == [LoadStatus.LOADING, LoadStatus.LOADED]

        unsubscribe()
        await store.reload()
        assert len(seen) == 2
