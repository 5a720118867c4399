"""
Stream session: the connection state machine and its sampling pipeline.

A session binds one live stream at a time. It owns the single
ConnectionStatus value, the current StreamSource, the media handle, the two
samplers (preview and analysis) and the latest CrowdStatus.

All methods run on one asyncio event loop. Blocking media calls are pushed
to worker threads; every continuation that resumes after an await is
checked against the session identity and dropped if a newer connect() or a
disconnect() happened meanwhile.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from analysis.alerts import AlertGate
from analysis.blank_filter import BlankFrameFilter
from analysis.classifier import CrowdClassifier
from inference.backend import DetectorPort, load_detector, run_detector
from models.config import SamplingConfig
from models.connection import (
    REASON_FALLBACK_FAILED,
    REASON_UNREACHABLE,
    ConnectionState,
    ConnectionStatus,
    StreamKind,
    StreamSource,
    TransportMode,
)
from models.crowd import AlertEvent, CrowdStatus
from models.frame import FrameData
from observation.base import MediaUnavailableError, ObservationSource
from observation.rtsp_utils import sanitize_url
from observation.transport import derive_fallback, normalize
from .errors import InvalidInputError, InvalidTransitionError
from .sampler import FrameSampler

SourceFactory = Callable[[str, TransportMode], ObservationSource]
AlertListener = Callable[[AlertEvent], None]

_S = ConnectionState
TRANSITIONS: Dict[ConnectionState, frozenset] = {
    _S.IDLE: frozenset({_S.CONNECTING, _S.DISCONNECTED}),
    _S.CONNECTING: frozenset({_S.CONNECTED_PRIMARY, _S.ERROR, _S.DISCONNECTED}),
    _S.CONNECTED_PRIMARY: frozenset({_S.CONNECTED_FALLBACK, _S.ERROR, _S.DISCONNECTED}),
    _S.CONNECTED_FALLBACK: frozenset({_S.ERROR, _S.DISCONNECTED}),
    _S.ERROR: frozenset({_S.CONNECTING, _S.DISCONNECTED}),
    _S.DISCONNECTED: frozenset({_S.CONNECTING, _S.DISCONNECTED}),
}

CONNECTABLE_STATES = frozenset({_S.IDLE, _S.DISCONNECTED, _S.ERROR})


class TickOutcome(str, Enum):
    """What an analysis tick did with its frame."""
    CLASSIFIED = "classified"
    BLANK = "blank"
    DETECTOR_FAILED = "detector_failed"
    SKIPPED = "skipped"
    STALE = "stale"


class StreamSession:
    """
    Connection state machine for one live stream.

    Args:
        detector: Live-mode detector.
        source_factory: Builds a media handle for (canonical_url, transport_mode).
        sampling: Cadences and blank threshold.
        alerts_enabled: Initial alerts toggle.
    """

    def __init__(
        self,
        detector: DetectorPort,
        source_factory: SourceFactory,
        sampling: Optional[SamplingConfig] = None,
        alerts_enabled: bool = True,
    ):
        sampling = sampling or SamplingConfig()
        self.detector = detector
        self.source_factory = source_factory
        self.sampling = sampling
        self.alerts_enabled = alerts_enabled
        self.detector_ready = False

        self.blank_filter = BlankFrameFilter(sampling.blank_threshold)
        self.classifier = CrowdClassifier()
        self.alert_gate = AlertGate(origin="stream")

        settle_s = sampling.settle_delay_ms / 1000.0
        self.preview_sampler = FrameSampler("preview", sampling.preview_cadence_ms / 1000.0, settle_s)
        self.analysis_sampler = FrameSampler("analysis", sampling.analysis_cadence_ms / 1000.0, settle_s)

        self._status = ConnectionStatus(ConnectionState.IDLE)
        self._session_id = 0
        self._media: Optional[ObservationSource] = None
        self._listeners: List[AlertListener] = []

        self.stream: Optional[StreamSource] = None
        self.crowd_status: Optional[CrowdStatus] = None
        self.no_signal = False
        self.latest_frame: Optional[FrameData] = None
        self.last_outcome: Optional[TickOutcome] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def state(self) -> ConnectionState:
        return self._status.state

    @property
    def session_id(self) -> int:
        return self._session_id

    def _set_status(self, status: ConnectionStatus) -> None:
        current = self._status.state
        if status.state not in TRANSITIONS[current]:
            raise InvalidTransitionError(f"Cannot move from {current.value} to {status.state.value}")
        self._status = status
        if status.reason:
            logging.info(f"Connection state: {current.value} -> {status.state.value} ({status.reason})")
        else:
            logging.info(f"Connection state: {current.value} -> {status.state.value}")

    def _is_current(self, session_id: int) -> bool:
        return session_id == self._session_id

    # ------------------------------------------------------------------
    # Detector
    # ------------------------------------------------------------------

    async def load_detector(self) -> None:
        """Run the detector's load hook; analysis ticks are skipped until it completes."""
        await load_detector(self.detector)
        self.detector_ready = True
        logging.info("Detector ready")

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self, raw_url: str, kind: StreamKind | str) -> ConnectionStatus:
        """
        Bind a stream and start sampling.

        Raises:
            InvalidInputError: Blank URL or unknown stream kind (no state change).
            InvalidTransitionError: Already connecting or connected.

        Returns:
            The resulting ConnectionStatus. An unreachable stream is not an
            exception; it shows up as error(reason="unreachable").
        """
        if raw_url is None or not raw_url.strip():
            raise InvalidInputError("Stream URL must not be empty")
        try:
            kind = StreamKind(kind)
        except ValueError as e:
            raise InvalidInputError(f"Unknown stream kind: {kind!r}") from e
        if self.state not in CONNECTABLE_STATES:
            raise InvalidTransitionError(f"Cannot connect while {self.state.value}")

        raw_url = raw_url.strip()
        self._session_id += 1
        session_id = self._session_id

        self.stream = StreamSource(
            raw_url=raw_url,
            kind=kind,
            canonical_url=normalize(raw_url, kind),
            transport_mode=TransportMode.PRIMARY,
        )
        self.crowd_status = None
        self.no_signal = False
        self.latest_frame = None
        self._set_status(ConnectionStatus(ConnectionState.CONNECTING))
        logging.info(f"Connecting to {sanitize_url(self.stream.canonical_url)} ({kind.value})")

        media = self.source_factory(self.stream.canonical_url, TransportMode.PRIMARY)
        try:
            await asyncio.to_thread(media.open)
        except MediaUnavailableError as e:
            if not self._is_current(session_id):
                return self._status
            logging.warning(f"Primary open failed: {e}")
            await self._enter_error(REASON_UNREACHABLE)
            return self._status

        if not self._is_current(session_id):
            await asyncio.to_thread(media.close)
            return self._status

        self._media = media
        self._set_status(ConnectionStatus(ConnectionState.CONNECTED_PRIMARY))
        self._start_sampling(session_id)
        return self._status

    async def disconnect(self) -> ConnectionStatus:
        """Tear down the current stream. Valid in every state and idempotent."""
        self._session_id += 1
        self._stop_sampling()
        media, self._media = self._media, None
        self.stream = None
        self.crowd_status = None
        self.no_signal = False
        self.latest_frame = None
        if self.state is not ConnectionState.DISCONNECTED:
            self._set_status(ConnectionStatus(ConnectionState.DISCONNECTED))
        if media is not None:
            await asyncio.to_thread(media.close)
        return self._status

    # ------------------------------------------------------------------
    # Media errors
    # ------------------------------------------------------------------

    async def report_media_error(self) -> ConnectionStatus:
        """Playback failure reported by the presentation layer for the current stream."""
        await self._handle_media_error(self._session_id, self._current_mode())
        return self._status

    def _current_mode(self) -> Optional[TransportMode]:
        return self.stream.transport_mode if self.stream else None

    async def _handle_media_error(self, session_id: int, mode: Optional[TransportMode]) -> None:
        if not self._is_current(session_id) or mode is not self._current_mode():
            logging.debug("Ignoring media error from a stale session")
            return

        if self.state is ConnectionState.CONNECTED_PRIMARY:
            if self.stream.kind is StreamKind.RTSP:
                logging.warning("RTSP stream failed; no fallback transport for RTSP")
                await self._enter_error(REASON_UNREACHABLE)
                return
            await self._switch_to_fallback(session_id)
        elif self.state is ConnectionState.CONNECTED_FALLBACK:
            if self._media is None:
                logging.debug("Ignoring media error while the fallback transport is opening")
                return
            logging.warning("Fallback transport failed")
            await self._enter_error(REASON_FALLBACK_FAILED)
        else:
            logging.debug(f"Ignoring media error while {self.state.value}")

    async def _switch_to_fallback(self, session_id: int) -> None:
        # Commit the switch before the first await so a concurrent error sees fallback.
        self._stop_sampling()
        media, self._media = self._media, None
        fallback_url = derive_fallback(self.stream.canonical_url)
        self.stream = StreamSource(
            raw_url=self.stream.raw_url,
            kind=self.stream.kind,
            canonical_url=fallback_url,
            transport_mode=TransportMode.FALLBACK,
        )
        self.latest_frame = None
        self._set_status(ConnectionStatus(ConnectionState.CONNECTED_FALLBACK))
        logging.warning(f"Switching to fallback transport: {sanitize_url(fallback_url)}")

        if media is not None:
            await asyncio.to_thread(media.close)
        if not self._is_current(session_id):
            return

        media = self.source_factory(fallback_url, TransportMode.FALLBACK)
        try:
            await asyncio.to_thread(media.open)
        except MediaUnavailableError as e:
            if not self._is_current(session_id):
                return
            logging.warning(f"Fallback open failed: {e}")
            await self._enter_error(REASON_FALLBACK_FAILED)
            return

        if not self._is_current(session_id):
            await asyncio.to_thread(media.close)
            return

        self._media = media
        self._start_sampling(session_id)

    async def _enter_error(self, reason: str) -> None:
        self._stop_sampling()
        media, self._media = self._media, None
        self.crowd_status = None
        self.no_signal = False
        self.latest_frame = None
        self._set_status(ConnectionStatus.error(reason))
        if media is not None:
            await asyncio.to_thread(media.close)

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def _start_sampling(self, session_id: int) -> None:
        media = self._media
        mode = self._current_mode()

        async def on_error(error: MediaUnavailableError) -> None:
            await self._handle_media_error(session_id, mode)

        async def on_preview(frame: Optional[FrameData]) -> None:
            await self._preview_tick(session_id, frame)

        async def on_analysis(frame: Optional[FrameData]) -> None:
            await self.analysis_tick(session_id, frame)

        if media.has_pixels:
            self.preview_sampler.start(media, on_preview, on_error)
        self.analysis_sampler.start(media, on_analysis, on_error)

    def _stop_sampling(self) -> None:
        self.preview_sampler.stop()
        self.analysis_sampler.stop()

    async def _preview_tick(self, session_id: int, frame: Optional[FrameData]) -> None:
        if frame is None or not self._is_current(session_id):
            return
        self.latest_frame = frame
        self.no_signal = self.blank_filter.is_blank(frame)

    async def analysis_tick(self, session_id: int, frame: Optional[FrameData]) -> TickOutcome:
        """
        One analysis step: blank filter, detector, classifier, alert gate.

        Blank frames and detector failures leave the current CrowdStatus
        untouched. A result that resolves after the session changed is
        discarded.
        """
        outcome = await self._analyze(session_id, frame)
        if self._is_current(session_id):
            self.last_outcome = outcome
        return outcome

    async def _analyze(self, session_id: int, frame: Optional[FrameData]) -> TickOutcome:
        if not self._is_current(session_id) or not self.state.is_connected:
            return TickOutcome.STALE
        if not self.detector_ready:
            return TickOutcome.SKIPPED

        if frame is not None and self.blank_filter.is_blank(frame):
            self.no_signal = True
            return TickOutcome.BLANK

        try:
            result = await run_detector(self.detector, frame)
        except Exception:
            logging.exception("Detector failed; keeping previous crowd status")
            return TickOutcome.DETECTOR_FAILED

        if not self._is_current(session_id) or not self.state.is_connected:
            logging.debug("Discarding detection for a stale session")
            return TickOutcome.STALE

        status = self.classifier.classify(result)
        self.crowd_status = status
        self.no_signal = False

        alert = self.alert_gate.maybe_alert(status, self.alerts_enabled)
        if alert is not None:
            self._emit_alert(alert)
        return TickOutcome.CLASSIFIED

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def set_alerts_enabled(self, enabled: bool) -> None:
        self.alerts_enabled = bool(enabled)
        logging.info(f"Alerts {'enabled' if self.alerts_enabled else 'disabled'}")

    def add_alert_listener(self, listener: AlertListener) -> None:
        self._listeners.append(listener)

    def remove_alert_listener(self, listener: AlertListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit_alert(self, alert: AlertEvent) -> None:
        logging.warning(f"ALERT: {alert.message}")
        for listener in list(self._listeners):
            try:
                listener(alert)
            except Exception as e:
                logging.warning(f"Alert listener failed: {e}")

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view of the session for the API."""
        return {
            "connection": self._status.to_dict(),
            "stream": self.stream.to_dict() if self.stream else None,
            "crowd_status": self.crowd_status.to_dict() if self.crowd_status else None,
            "no_signal": self.no_signal,
            "alerts_enabled": self.alerts_enabled,
            "detector_ready": self.detector_ready,
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
        }
