"""Execution-unit cache of the IdP discovery document and signing keys."""

import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError

from .errors import BootstrapFailure
from .idp_client import IdPClient
from .logging_config import LOGGER
from .models import MetadataSnapshot


class MetadataCache:
    """Lazily populated, single-flight cache of IdP metadata.

    The cache is either empty or holds a complete ``MetadataSnapshot``.
    The first caller on an empty cache fetches discovery and then the key
    set. Concurrent callers wait for that fetch and share its result or its
    error. The internal lock is never held across I/O.
    """

    def __init__(self, idp_client: IdPClient) -> None:
        self._idp_client = idp_client
        self._lock = threading.Lock()
        self._snapshot: MetadataSnapshot | None = None
        self._inflight: Future[MetadataSnapshot] | None = None

    @property
    def snapshot(self) -> MetadataSnapshot | None:
        return self._snapshot

    def reset(self) -> None:
        """Drop cached metadata so the next call bootstraps again."""
        with self._lock:
            self._snapshot = None

    def ensure_ready(self, deadline: float | None = None) -> MetadataSnapshot:
        """Return the cached snapshot, bootstrapping it if needed.

        Args:
            deadline: Monotonic deadline for this invocation

        Returns:
            Fully populated MetadataSnapshot

        Raises:
            BootstrapFailure: If the fetch failed or the deadline passed while waiting
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        with self._lock:
            if self._snapshot is not None:
                return self._snapshot
            if self._inflight is None:
                future: Future[MetadataSnapshot] = Future()
                self._inflight = future
                leader = True
            else:
                future = self._inflight
                leader = False

        if leader:
            return self._bootstrap(future, deadline)
        return self._wait(future, deadline)

    def _bootstrap(self, future: Future, deadline: float | None) -> MetadataSnapshot:
        LOGGER.info("Bootstrapping IdP metadata")
        try:
            discovery = self._idp_client.fetch_discovery(deadline)
            key_set = self._idp_client.fetch_key_set(discovery.jwks_uri, deadline)
        except BootstrapFailure as e:
            self._fail(future, e)
            raise
        except Exception as e:
            error = BootstrapFailure(f"Unexpected bootstrap error: {e}")
            self._fail(future, error)
            raise error from e

        snapshot = MetadataSnapshot(discovery=discovery, key_set=key_set)
        with self._lock:
            self._snapshot = snapshot
            self._inflight = None
        future.set_result(snapshot)
        LOGGER.info("IdP metadata cached", extra={"keyCount": len(key_set.keys)})
        return snapshot

    def _fail(self, future: Future, error: BootstrapFailure) -> None:
        LOGGER.error("IdP metadata bootstrap failed", extra={"reason": error.message})
        with self._lock:
            self._inflight = None
        future.set_exception(error)

    def _wait(self, future: Future, deadline: float | None) -> MetadataSnapshot:
        timeout = None if deadline is None else max(deadline - time.monotonic(), 0)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise BootstrapFailure("Timed out waiting for IdP metadata bootstrap") from e
