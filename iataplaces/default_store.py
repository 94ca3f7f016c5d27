"""Once-only lazy loading of an airport store, plus the process-wide default."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from .config import Config
from .models import Airport
from .store import AirportStore, StructuralLoadError, load_from_file

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class LazyAirportStore:
    """Builds an AirportStore from disk on first use, exactly once.

    Concurrent first callers wait on the same build. Its result, or its
    StructuralLoadError, is cached and handed to every later caller without
    retrying. ``reload`` is the only way to replace it.
    """

    def __init__(self, path_provider: Callable[[], PathLike]):
        self._path_provider = path_provider
        self._lock = threading.Lock()
        # (store, error) swapped as one reference; None until the first build.
        self._state: Optional[Tuple[Optional[AirportStore], Optional[StructuralLoadError]]] = None

    def get(self) -> AirportStore:
        """Return the store, building it on the first call.

        Raises StructuralLoadError, chained to the cached build failure,
        if the build failed.
        """
        state = self._state
        if state is None:
            with self._lock:
                if self._state is None:
                    self._state = self._load()
                state = self._state
        store, error = state
        if error is not None:
            raise StructuralLoadError(str(error)) from error
        return store

    def _load(self) -> Tuple[Optional[AirportStore], Optional[StructuralLoadError]]:
        path = self._path_provider()
        try:
            store = load_from_file(path)
        except StructuralLoadError as exc:
            error = StructuralLoadError(f"failed to load airports CSV from {path}: {exc}")
            error.__cause__ = exc
            logger.warning("%s", error)
            return None, error
        logger.info("Loaded %s IATA airports from %s", len(store), path)
        return store, None

    def lookup_iata(self, code: str) -> Tuple[Optional[Airport], bool]:
        """Look up ``code``; a failed build behaves as a permanent miss."""
        try:
            store = self.get()
        except StructuralLoadError:
            return None, False
        return store.lookup_iata(code)

    def reload(self, path: Optional[PathLike] = None) -> AirportStore:
        """Parse a fresh store and swap it in.

        Lookups already holding the old store keep using it. A failed
        reload raises and leaves the current state untouched.
        """
        source = path if path is not None else self._path_provider()
        store = load_from_file(source)
        with self._lock:
            self._state = (store, None)
        logger.info("Reloaded %s IATA airports from %s", len(store), source)
        return store

    def reset(self) -> None:
        """Forget any cached store or error so the next call rebuilds."""
        with self._lock:
            self._state = None


_default = LazyAirportStore(lambda: Config.from_env().csv_path)


def get_default_store() -> AirportStore:
    return _default.get()


def lookup_iata(code: str) -> Tuple[Optional[Airport], bool]:
    """Look up an airport in the default store loaded from AIRPORTS_CSV_PATH."""
    return _default.lookup_iata(code)


def reload_default_store(path: Optional[PathLike] = None) -> AirportStore:
    return _default.reload(path)


def reset_default_store() -> None:
    _default.reset()
