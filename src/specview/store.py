"""Load-and-normalize state machine with stale-while-revalidate reloads.

:class:`SpecStore` owns one source descriptor plus loader options and keeps
the latest normalized :class:`~specview.models.ParsedSpec` for consumers.
Its state moves through four statuses driven by three events::

    idle    --source_changed-->  loading
    loading --source_changed-->  loading
    loading --load_succeeded-->  loaded
    loading --load_failed----->  error
    loaded  --source_changed-->  loading
    error   --source_changed-->  loading

Loads are keyed by a *signature*: a stable JSON serialization of the source
and options (the injected fetcher excluded).

* :meth:`SpecStore.update` only loads when the signature changes.
* A load for a signature already in flight is shared, never duplicated.
* While reloading the same signature, the previous data stays visible.
  Starting a load for a different signature clears it at once.
* A result that arrives after its signature was superseded is discarded.
* A failed load drops the data and records the error message.

Everything runs on one event loop; no locks are involved.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from specview.exceptions import SpecviewError
from specview.models import LoaderOptions, ParsedSpec, SpecSource
from specview.parser import load_document, normalize_document

logger = logging.getLogger(__name__)


class LoadStatus(str, enum.Enum):
    """Lifecycle status of a :class:`SpecStore`."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class LoadEvent(str, enum.Enum):
    """Events that move a :class:`SpecStore` between statuses."""

    SOURCE_CHANGED = "source_changed"
    LOAD_SUCCEEDED = "load_succeeded"
    LOAD_FAILED = "load_failed"


TRANSITIONS: dict[tuple[LoadStatus, LoadEvent], LoadStatus] = {
    (LoadStatus.IDLE, LoadEvent.SOURCE_CHANGED): LoadStatus.LOADING,
    (LoadStatus.LOADING, LoadEvent.SOURCE_CHANGED): LoadStatus.LOADING,
    (LoadStatus.LOADING, LoadEvent.LOAD_SUCCEEDED): LoadStatus.LOADED,
    (LoadStatus.LOADING, LoadEvent.LOAD_FAILED): LoadStatus.ERROR,
    (LoadStatus.LOADED, LoadEvent.SOURCE_CHANGED): LoadStatus.LOADING,
    (LoadStatus.ERROR, LoadEvent.SOURCE_CHANGED): LoadStatus.LOADING,
}


class InvalidTransitionError(SpecviewError):
    """Raised when an event has no transition from the current status."""


def transition(status: LoadStatus, event: LoadEvent) -> LoadStatus:
    """Look up the status that *event* leads to from *status*.

    Raises:
        InvalidTransitionError: If the pair is not in :data:`TRANSITIONS`.
    """
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"No transition for event '{event.value}' from status '{status.value}'"
        ) from None


class SpecState(BaseModel):
    """Snapshot of a :class:`SpecStore` handed to consumers."""

    model_config = ConfigDict(frozen=True)

    status: LoadStatus = LoadStatus.IDLE
    data: Optional[ParsedSpec] = None
    error: Optional[str] = None
    signature: Optional[str] = None


def compute_signature(source: SpecSource, options: LoaderOptions) -> str:
    """Serialize *source* and *options* into a stable comparison key."""
    payload = {
        "source": source.model_dump(mode="json"),
        "options": options.model_dump(mode="json", exclude={"fetcher"}),
    }
    return json.dumps(payload, sort_keys=True, default=str)


StateListener = Callable[[SpecState], None]


class SpecStore:
    """Holds the normalized document for one source and reloads it on demand.

    Construction performs no I/O; the store stays ``idle`` until the first
    :meth:`update` or :meth:`reload`.

    Args:
        source: Where the document comes from.
        options: Loader-wide options (fetcher, format override, timeouts).

    Example::

        store = SpecStore(UrlSource(url="https://example.com/openapi.json"))
        state = await store.update()
        if state.status == LoadStatus.LOADED:
            render(state.data)
    """

    def __init__(
        self,
        source: SpecSource,
        options: Optional[LoaderOptions] = None,
    ) -> None:
        self._source = source
        self._options = options or LoaderOptions()
        self._state = SpecState()
        self._requested_signature: Optional[str] = None
        self._loaded_signature: Optional[str] = None
        self._in_flight: dict[str, asyncio.Task[SpecState]] = {}
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SpecState:
        """The current state snapshot."""
        return self._state

    @property
    def signature(self) -> str:
        """Signature of the current source and options."""
        return compute_signature(self._source, self._options)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with every new state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def update(
        self,
        source: Optional[SpecSource] = None,
        options: Optional[LoaderOptions] = None,
    ) -> SpecState:
        """Switch to a new source and/or options, loading only if they changed.

        Calling with no arguments performs the initial load when nothing has
        been requested yet, and is otherwise a no-op that returns the current
        (or in-flight) state.
        """
        if source is not None:
            self._source = source
        if options is not None:
            self._options = options
        return await self._request(self.signature, force=False)

    async def reload(self) -> SpecState:
        """Load the current source again, sharing any load already in flight."""
        return await self._request(self.signature, force=True)

    async def _request(self, signature: str, force: bool) -> SpecState:
        task = self._in_flight.get(signature)
        if task is not None:
            logger.debug("Joining in-flight load for %s", _short(signature))
            self._requested_signature = signature
            return await asyncio.shield(task)

        if not force and signature == self._requested_signature:
            return self._state

        self._requested_signature = signature
        task = asyncio.ensure_future(
            self._perform_load(signature, self._source, self._options)
        )
        self._in_flight[signature] = task
        task.add_done_callback(lambda done: self._forget(signature, done))
        return await asyncio.shield(task)

    def _forget(self, signature: str, task: asyncio.Task[SpecState]) -> None:
        if self._in_flight.get(signature) is task:
            del self._in_flight[signature]

    async def _perform_load(
        self,
        signature: str,
        source: SpecSource,
        options: LoaderOptions,
    ) -> SpecState:
        if signature != self._requested_signature:
            logger.debug("Skipping load superseded before it started")
            return self._state

        retained = self._state.data if self._loaded_signature == signature else None
        self._dispatch(LoadEvent.SOURCE_CHANGED, signature, data=retained)

        try:
            document = await load_document(source, options)
            spec = normalize_document(document)
        except SpecviewError as exc:
            if signature != self._requested_signature:
                logger.warning("Discarding failed load for superseded source: %s", exc)
                return self._state
            logger.debug("Load failed: %s", exc)
            self._loaded_signature = None
            self._dispatch(LoadEvent.LOAD_FAILED, signature, error=str(exc))
            return self._state
        except Exception as exc:
            if signature != self._requested_signature:
                logger.warning("Discarding failed load for superseded source: %s", exc)
                return self._state
            logger.exception("Unexpected error while loading %s", _short(signature))
            self._loaded_signature = None
            self._dispatch(LoadEvent.LOAD_FAILED, signature, error=str(exc) or type(exc).__name__)
            return self._state

        if signature != self._requested_signature:
            logger.warning("Discarding result for superseded source %s", _short(signature))
            return self._state

        self._loaded_signature = signature
        self._dispatch(LoadEvent.LOAD_SUCCEEDED, signature, data=spec)
        return self._state

    def _dispatch(
        self,
        event: LoadEvent,
        signature: str,
        data: Optional[ParsedSpec] = None,
        error: Optional[str] = None,
    ) -> None:
        status = transition(self._state.status, event)
        self._state = SpecState(status=status, data=data, error=error, signature=signature)
        for listener in list(self._listeners):
            listener(self._state)


def _short(signature: str) -> str:
    return signature if len(signature) <= 80 else signature[:77] + "..."
