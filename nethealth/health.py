"""
Snapshot provider.

:class:`NetworkHealth` bridges a raw connectivity source into
:class:`~nethealth.snapshot.NetworkSnapshot` values: one-shot
(:meth:`~NetworkHealth.snapshot`), measured
(:meth:`~NetworkHealth.detailed_snapshot`) or continuous
(:meth:`~NetworkHealth.stream`).  None of these raise on connectivity or
measurement failures; they degrade to an offline / poor snapshot instead.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, Optional

from .connectivity import (
    OFFLINE_STATE,
    ConnectionState,
    ConnectivitySource,
    PsutilConnectivitySource,
)
from .errors import ConfigurationError, ConnectivityError, SpeedTestInProgressError
from .quality import NetworkQuality
from .requirements import HealthCheckResult, NetworkRequirement, check_requirement
from .snapshot import NetworkSnapshot
from .speedtester import SpeedTester

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stream
# ---------------------------------------------------------------------------

class SnapshotStream:
    """
    One subscription to connectivity changes, consumed with ``async for``.

    The source is subscribed lazily on the first iteration and the current
    state is emitted first.  Raw states equal to the last accepted one are
    dropped.  At most one state waits for the consumer; a newer state
    replaces it, and a replacement equal to the last delivered state
    empties the slot instead.  :meth:`close` (also run on cancellation and
    on leaving ``async with``) unsubscribes at once, and the iterator ends
    without yielding anything else.
    """

    def __init__(
        self,
        source: ConnectivitySource,
        query: Callable[[], ConnectionState],
    ) -> None:
        self._source = source
        self._query = query
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._ready: Optional[asyncio.Event] = None
        self._token: Optional[int] = None
        self._pending: Optional[ConnectionState] = None
        self._last: Optional[ConnectionState] = None
        self._delivered: Optional[ConnectionState] = None
        self._closed = False

    # -- Iteration ----------------------------------------------------------

    def __aiter__(self) -> SnapshotStream:
        return self

    async def __anext__(self) -> NetworkSnapshot:
        if self._closed:
            raise StopAsyncIteration
        if self._token is None:
            self._open()

        try:
            while self._pending is None and not self._closed:
                await self._ready.wait()  # type: ignore[union-attr]
                self._ready.clear()  # type: ignore[union-attr]
        except asyncio.CancelledError:
            self.close()
            raise

        if self._closed:
            raise StopAsyncIteration
        state, self._pending = self._pending, None
        self._delivered = state
        return NetworkSnapshot.from_state(state)  # type: ignore[arg-type]

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> SnapshotStream:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    async def aclose(self) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._token is not None:
            self._source.unsubscribe(self._token)
            self._token = None
            LOGGER.debug("Snapshot stream unsubscribed")
        if self._ready is not None:
            self._ready.set()

    # -- Internals ----------------------------------------------------------

    def _open(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._ready = asyncio.Event()
        self._token = self._source.subscribe(self._offer)
        self._accept(self._query())
        LOGGER.debug("Snapshot stream subscribed")

    def _offer(self, state: ConnectionState) -> None:
        """Source callback; may run on any thread."""
        if self._closed or self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._accept, state)
        except RuntimeError:
            # Event loop already closed: the consumer is gone.
            return

    def _accept(self, state: ConnectionState) -> None:
        if self._closed or state == self._last:
            return
        self._last = state
        if state == self._delivered:
            # Changed back before the consumer saw the intermediate state.
            self._pending = None
            return
        self._pending = state
        self._ready.set()  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class NetworkHealth:
    """Entry point for snapshots, streams and requirement checks."""

    def __init__(self, source: Optional[ConnectivitySource] = None) -> None:
        self.source: ConnectivitySource = (
            source if source is not None else PsutilConnectivitySource()
        )

    # -- Snapshots ----------------------------------------------------------

    def snapshot(self) -> NetworkSnapshot:
        """Current state without speed fields; never raises."""
        return NetworkSnapshot.from_state(self._query_state())

    async def detailed_snapshot(self, tester: SpeedTester) -> NetworkSnapshot:
        """
        Current state enriched with one measurement from *tester*.

        Quality is reclassified on the measured download speed.  If the
        measurement fails the snapshot carries no speed fields and its
        quality is POOR (OFFLINE when there is no path at all).
        Usage errors from the tester (bad configuration, a run already in
        progress) are raised.
        """
        state = self._query_state()
        if not state.connected:
            return NetworkSnapshot.from_state(state)

        try:
            measurement = await tester.measure_speed()
        except (ConfigurationError, SpeedTestInProgressError):
            raise
        except Exception as exc:
            LOGGER.warning("Speed measurement failed (%s); snapshot degraded", exc)
            return dataclasses.replace(
                NetworkSnapshot.from_state(state),
                quality=NetworkQuality.POOR,
            )

        return NetworkSnapshot.from_state(
            state,
            download_speed_mbps=measurement.download_speed_mbps,
            upload_speed_mbps=measurement.upload_speed_mbps,
            latency_seconds=measurement.latency_seconds,
        )

    def stream(self) -> SnapshotStream:
        """A new, not yet subscribed, stream of snapshots."""
        return SnapshotStream(self.source, self._query_state)

    # -- Requirement checks -------------------------------------------------

    def check(
        self,
        requirement: NetworkRequirement,
        snapshot: Optional[NetworkSnapshot] = None,
    ) -> HealthCheckResult:
        return check_requirement(requirement, snapshot or self.snapshot())

    def is_good_enough_for(self, requirement: NetworkRequirement) -> bool:
        return self.check(requirement).passed

    # -- Internals ----------------------------------------------------------

    def _query_state(self) -> ConnectionState:
        try:
            return self.source.current_state()
        except (ConnectivityError, OSError) as exc:
            LOGGER.warning("Connectivity query failed (%s); reporting offline", exc)
            return OFFLINE_STATE
