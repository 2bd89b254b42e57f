"""
Raw connectivity sources.

A source answers "what does the path look like right now" and pushes the
same shape to subscribers whenever it changes.  Two implementations are
provided: :class:`PsutilConnectivitySource`, which enumerates the OS
interfaces, and :class:`ManualConnectivitySource`, which is driven by the
caller (platform bridges, tests).
"""
from __future__ import annotations

import itertools
import logging
import socket
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import psutil

from .constants import POLL_INTERVAL
from .errors import ConnectivityError
from .quality import ConnectionType

LOGGER = logging.getLogger(__name__)

StateCallback = Callable[["ConnectionState"], None]


# ---------------------------------------------------------------------------
# Raw state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConnectionState:
    """One observation of the raw path, compared field-by-field for dedup."""

    connected: bool
    connection_type: ConnectionType = ConnectionType.UNKNOWN
    is_expensive: bool = False
    is_constrained: bool = False
    interface_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "connection_type": self.connection_type.value,
            "is_expensive": self.is_expensive,
            "is_constrained": self.is_constrained,
            "interface_name": self.interface_name,
        }


OFFLINE_STATE = ConnectionState(connected=False)


class ConnectivitySource(Protocol):
    def current_state(self) -> ConnectionState: ...

    def subscribe(self, callback: StateCallback) -> int: ...

    def unsubscribe(self, token: int) -> None: ...

    @property
    def subscriber_count(self) -> int: ...


# ---------------------------------------------------------------------------
# Listener bookkeeping
# ---------------------------------------------------------------------------

class ListenerRegistry:
    """Thread-safe subscriber table shared by the concrete sources."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[int, StateCallback] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, callback: StateCallback) -> int:
        with self._lock:
            token = next(self._tokens)
            self._listeners[token] = callback
            if len(self._listeners) == 1:
                self._on_first_subscriber()
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            if self._listeners.pop(token, None) is None:
                return
            if not self._listeners:
                self._on_last_unsubscribed()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _notify(self, state: ConnectionState) -> None:
        # Callbacks run outside the lock so they may (un)subscribe.
        with self._lock:
            listeners = list(self._listeners.values())
        for callback in listeners:
            callback(state)

    # Hooks run while holding the lock.

    def _on_first_subscriber(self) -> None:
        pass

    def _on_last_unsubscribed(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Caller-driven source
# ---------------------------------------------------------------------------

class ManualConnectivitySource(ListenerRegistry):
    """Source whose state is pushed in with :meth:`set_state`."""

    def __init__(self, state: ConnectionState = OFFLINE_STATE) -> None:
        super().__init__()
        self._state = state

    def current_state(self) -> ConnectionState:
        return self._state

    def set_state(self, state: ConnectionState) -> None:
        self._state = state
        self._notify(state)


# ---------------------------------------------------------------------------
# psutil-backed source
# ---------------------------------------------------------------------------

_VIRTUAL_PREFIXES = (
    "lo", "docker", "br-", "veth", "virbr", "vmnet", "vboxnet",
    "awdl", "llw", "bridge", "gif", "stf", "anpi",
)
_WIFI_PREFIXES = ("wl", "wifi", "ath")
_WIFI_MARKERS = ("wi-fi", "wireless", "wlan")
_CELLULAR_PREFIXES = ("wwan", "rmnet", "ccmni", "pdp_ip", "ppp")
_CELLULAR_MARKERS = ("cellular", "mobile broadband")
_ETHERNET_PREFIXES = ("eth", "en", "em")
_ETHERNET_MARKERS = ("ethernet",)

# Lower index wins when several interfaces are up.
_PREFERENCE = [
    ConnectionType.ETHERNET,
    ConnectionType.WIFI,
    ConnectionType.CELLULAR,
    ConnectionType.OTHER,
]


def is_virtual_interface(name: str) -> bool:
    return name.lower().startswith(_VIRTUAL_PREFIXES)


def interface_type(name: str) -> ConnectionType:
    """Infer the link type from an interface name (Linux, macOS, Windows)."""
    lowered = name.lower()
    if lowered.startswith(_WIFI_PREFIXES) or any(m in lowered for m in _WIFI_MARKERS):
        return ConnectionType.WIFI
    if lowered.startswith(_CELLULAR_PREFIXES) or any(m in lowered for m in _CELLULAR_MARKERS):
        return ConnectionType.CELLULAR
    if lowered.startswith(_ETHERNET_PREFIXES) or any(m in lowered for m in _ETHERNET_MARKERS):
        return ConnectionType.ETHERNET
    return ConnectionType.OTHER


def _has_routable_address(addrs: Sequence[Any]) -> bool:
    for addr in addrs:
        if addr.family == socket.AF_INET:
            if not addr.address.startswith(("127.", "169.254.")):
                return True
        elif addr.family == socket.AF_INET6:
            address = addr.address.lower()
            if address != "::1" and not address.startswith("fe80"):
                return True
    return False


def state_from_interfaces(
    stats: Mapping[str, Any],
    addrs: Mapping[str, Sequence[Any]],
) -> ConnectionState:
    """
    Reduce ``psutil.net_if_stats()`` / ``psutil.net_if_addrs()`` output to a
    single :class:`ConnectionState`.

    The preferred interface is the up, non-virtual one with a routable
    address whose type ranks highest in ethernet > wifi > cellular > other.
    Cellular paths are reported as expensive.  There is no portable
    data-saver flag, so ``is_constrained`` is always False.
    """
    candidates: List[Tuple[int, str, ConnectionType]] = []

    for name, stat in stats.items():
        if is_virtual_interface(name) or not stat.isup:
            continue
        if not _has_routable_address(addrs.get(name, [])):
            continue
        kind = interface_type(name)
        candidates.append((_PREFERENCE.index(kind), name, kind))

    if not candidates:
        return OFFLINE_STATE

    _, name, kind = min(candidates)
    return ConnectionState(
        connected=True,
        connection_type=kind,
        is_expensive=kind is ConnectionType.CELLULAR,
        is_constrained=False,
        interface_name=name,
    )


class PsutilConnectivitySource(ListenerRegistry):
    """
    OS-backed source.

    While at least one subscriber is registered, a daemon thread re-queries
    the interfaces every ``poll_interval`` seconds and notifies on change.
    The thread is told to stop as soon as the last subscriber leaves.
    """

    def __init__(self, poll_interval: float = POLL_INTERVAL) -> None:
        super().__init__()
        self.poll_interval = poll_interval
        self._stop: Optional[threading.Event] = None

    def current_state(self) -> ConnectionState:
        try:
            stats = psutil.net_if_stats()
            addrs = psutil.net_if_addrs()
        except (psutil.Error, OSError) as exc:
            raise ConnectivityError(f"Interface query failed: {exc}") from exc
        return state_from_interfaces(stats, addrs)

    # -- Poller -------------------------------------------------------------

    def _on_first_subscriber(self) -> None:
        self._stop = threading.Event()
        thread = threading.Thread(
            target=self._poll,
            args=(self._stop,),
            name="nethealth-connectivity",
            daemon=True,
        )
        thread.start()
        LOGGER.debug("Connectivity poller started (every %.2fs)", self.poll_interval)

    def _on_last_unsubscribed(self) -> None:
        if self._stop is not None:
            self._stop.set()
            self._stop = None
            LOGGER.debug("Connectivity poller stopped")

    def _poll(self, stop: threading.Event) -> None:
        last: Optional[ConnectionState] = None
        while not stop.is_set():
            try:
                state = self.current_state()
            except ConnectivityError as exc:
                LOGGER.warning("%s; reporting offline", exc)
                state = OFFLINE_STATE
            if state != last and not stop.is_set():
                last = state
                self._notify(state)
            stop.wait(self.poll_interval)
