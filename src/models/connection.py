"""
Connection models: stream kinds, transport modes, and the session's
connection state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class StreamKind(str, Enum):
    """Kind of live stream the operator asked for."""
    HTTP = "http"
    RTSP = "rtsp"


class TransportMode(str, Enum):
    """How the stream is being played back."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class ConnectionState(str, Enum):
    """Lifecycle states of a stream session."""
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED_PRIMARY = "connected_primary"
    CONNECTED_FALLBACK = "connected_fallback"
    DISCONNECTED = "disconnected"
    ERROR = "error"

    @property
    def is_connected(self) -> bool:
        return self in (ConnectionState.CONNECTED_PRIMARY, ConnectionState.CONNECTED_FALLBACK)


# Error reasons carried by ConnectionState.ERROR
REASON_UNREACHABLE = "unreachable"
REASON_FALLBACK_FAILED = "fallback-failed"

ERROR_MESSAGES = {
    REASON_UNREACHABLE: "Stream is unreachable. Please check the URL.",
    REASON_FALLBACK_FAILED: "Fallback mode failed. Stream is unreachable.",
}


@dataclass(frozen=True)
class ConnectionStatus:
    """
    The single connection state value owned by a session.

    Attributes:
        state: Current lifecycle state.
        reason: Error reason, set only when state is ERROR.
    """
    state: ConnectionState
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.reason is not None and self.state is not ConnectionState.ERROR:
            raise ValueError("Only the error state carries a reason")

    @classmethod
    def error(cls, reason: str) -> "ConnectionStatus":
        return cls(ConnectionState.ERROR, reason)

    @property
    def error_message(self) -> Optional[str]:
        if self.reason is None:
            return None
        return ERROR_MESSAGES.get(self.reason, f"Stream error: {self.reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "reason": self.reason,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class StreamSource:
    """
    A stream the session is bound to.

    Attributes:
        raw_url: URL exactly as entered by the operator.
        kind: HTTP or RTSP.
        canonical_url: Playback-ready URL for the current transport.
        transport_mode: Primary (direct media) or fallback (browser view).
    """
    raw_url: str
    kind: StreamKind
    canonical_url: str
    transport_mode: TransportMode = TransportMode.PRIMARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_url": self.raw_url,
            "kind": self.kind.value,
            "canonical_url": self.canonical_url,
            "transport_mode": self.transport_mode.value,
        }
