"""
==============================================================================
Scan Session Controller
==============================================================================

State machine driving one scan at a time.

    ┌──────┐  start()   ┌───────────┐  candidate  ┌───────────────────────┐
    │ IDLE │ ─────────▶ │ CAPTURING │ ──────────▶ │ AWAITING_CONFIRMATION │
    └──────┘            └───────────┘             └───────────────────────┘
       ▲  ▲   stop()         │                      │ cancel()  │ confirm()
       │  └──────────────────┘                      │           ▼
       │◀───────────────────────────────────────────┘    ┌────────────┐
       │◀────────────────────────────────────────────────│ SUBMITTING │
                        success or failure                └────────────┘

Capture Loop:
------------
One asyncio task per session. Each tick reads a frame, re-checks the
session's active flag, runs the decode pipeline, and sleeps for the frame
interval when there is no candidate. The frame source is closed before
the session leaves CAPTURING.

Failures:
--------
- Camera cannot be opened → CAMERA_ACCESS_DENIED, controller stays IDLE
- Capture error after start → session ends in IDLE, error kept on the
  session and in last_error
- Remote failure → REMOTE_*_FAILED raised after returning to IDLE, no retry

==============================================================================
"""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from barcode_scanner.core import exceptions
from barcode_scanner.core.exceptions import AppException
from barcode_scanner.remote.client import RemoteServiceClient, SubmissionResult
from barcode_scanner.scanner.capture import FrameSource, FrameSourceFactory, camera_factory
from barcode_scanner.scanner.pipeline import DecodePipeline
from barcode_scanner.utils.validators import BarcodeValidator


# Module logger
logger = logging.getLogger(__name__)


class ScanPhase(str, enum.Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTING = "submitting"

    def __str__(self) -> str:
        return self.value


@dataclass
class ScanSession:
    """
    One pass through the state machine.

    Attributes:
        id: Session identifier
        phase: Current phase of this session
        candidate: Decoded code awaiting confirmation
        active: Cleared when the session is stopped
        frames_processed: Frames run through the pipeline
        error: Last error message, if the session ended on one
        manual: True when the code was entered by hand
    """

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    phase: ScanPhase = ScanPhase.IDLE
    candidate: Optional[str] = None
    active: bool = False
    frames_processed: int = 0
    error: Optional[str] = None
    manual: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    capture_done: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    task: Optional[asyncio.Task] = field(default=None, repr=False)


class ScanSessionController:
    """
    Owns the current scan session and its frame source.

    Example:
        >>> controller = ScanSessionController.from_settings(get_settings())
        >>> await controller.start()
        >>> code = await controller.wait_for_candidate(timeout=30)
        >>> result = await controller.confirm()
    """

    def __init__(
        self,
        source_factory: FrameSourceFactory,
        pipeline: DecodePipeline,
        remote: RemoteServiceClient,
        frame_interval: float = 0.03,
        facing_mode: str = "environment"
    ) -> None:
        self._source_factory = source_factory
        self._pipeline = pipeline
        self._remote = remote
        self._frame_interval = frame_interval
        self._facing_mode = facing_mode

        self._lock = asyncio.Lock()
        self._session: Optional[ScanSession] = None
        self._stream: Optional[FrameSource] = None

        self.last_result: Optional[SubmissionResult] = None
        self.last_error: Optional[AppException] = None

    @classmethod
    def from_settings(
        cls,
        settings,
        remote: Optional[RemoteServiceClient] = None,
        source_factory: Optional[FrameSourceFactory] = None
    ) -> "ScanSessionController":
        return cls(
            source_factory or camera_factory(settings),
            DecodePipeline.from_settings(settings),
            remote or RemoteServiceClient.from_settings(settings),
            frame_interval=settings.frame_interval_seconds,
            facing_mode=settings.facing_mode,
        )

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def phase(self) -> ScanPhase:
        if self._session is None:
            return ScanPhase.IDLE
        return self._session.phase

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    @property
    def candidate(self) -> Optional[str]:
        if self._session is None:
            return None
        return self._session.candidate

    def _require(self, expected: ScanPhase) -> None:
        if self.phase != expected:
            raise exceptions.invalid_scan_state(self.phase.value, expected.value)

    # =========================================================================
    # CAPTURE
    # =========================================================================

    async def start(self) -> ScanSession:
        """
        Open a frame source and begin capturing.

        Raises:
            AppException: CAMERA_ACCESS_DENIED, INVALID_SCAN_STATE
        """
        async with self._lock:
            self._require(ScanPhase.IDLE)

            stream = self._source_factory(self._facing_mode)
            try:
                await stream.open()
            except AppException as e:
                self.last_error = e
                logger.warning(f"⚠️ Scan not started: {e.message}")
                raise

            session = ScanSession(phase=ScanPhase.CAPTURING, active=True)
            self._session = session
            self._stream = stream
            self.last_error = None
            session.task = asyncio.create_task(self._capture_loop(session, stream))

            logger.info(f"🔍 Scan session {session.id} started ({self._facing_mode})")
            return session

    async def _capture_loop(self, session: ScanSession, stream: FrameSource) -> None:
        candidate = None

        try:
            async with stream:
                while session.active:
                    frame = await stream.read()

                    # Stopped while the frame was in flight
                    if not session.active:
                        return

                    if frame is None:
                        if stream.exhausted:
                            logger.info(f"Frame source exhausted after {session.frames_processed} frames")
                            break
                        await asyncio.sleep(self._frame_interval)
                        continue

                    result = self._pipeline.decode(frame)
                    session.frames_processed += 1

                    if result.ok:
                        candidate = result.code
                        break

                    await asyncio.sleep(self._frame_interval)

        except asyncio.CancelledError:
            raise

        except Exception as e:
            logger.error(f"❌ Capture failed in session {session.id}: {e}")
            session.error = str(e)
            if self._session is session:
                self.last_error = exceptions.camera_access_denied(f"Capture failed: {e}")

        finally:
            self._finish_capture(session, candidate)

    def _finish_capture(self, session: ScanSession, candidate: Optional[str]) -> None:
        """Leave CAPTURING after the stream has been released."""
        if self._session is session and session.active and session.phase == ScanPhase.CAPTURING:
            if candidate is not None:
                session.candidate = candidate
                session.phase = ScanPhase.AWAITING_CONFIRMATION
                logger.info(f"📦 Candidate {candidate} after {session.frames_processed} frames")
            else:
                session.active = False
                session.phase = ScanPhase.IDLE

        if self._stream is not None and self._session is session:
            self._stream = None

        session.capture_done.set()

    async def wait_for_candidate(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Wait until the current session stops capturing.

        Returns:
            The candidate code, or None on timeout or when capture ended
            without one
        """
        session = self._session
        if session is None:
            return None

        try:
            await asyncio.wait_for(session.capture_done.wait(), timeout)
        except asyncio.TimeoutError:
            return None

        return session.candidate

    async def stop(self) -> None:
        """Stop the current session, whatever its phase."""
        async with self._lock:
            session = self._session
            phase = self.phase

            if session is None or phase == ScanPhase.IDLE:
                return

            if phase == ScanPhase.AWAITING_CONFIRMATION:
                self._discard(session)
                return

            if phase == ScanPhase.SUBMITTING:
                session.active = False
                session.phase = ScanPhase.IDLE
                self._session = None
                logger.info(f"Session {session.id} abandoned during submission")
                return

            session.active = False
            task = session.task
            if task is not None and not task.done():
                task.cancel()
                await asyncio.wait([task])

            # The task may have been cancelled before it entered the stream
            if self._stream is not None:
                await self._stream.close()
                self._stream = None

            session.phase = ScanPhase.IDLE
            session.capture_done.set()
            logger.info(f"⏹️ Scan session {session.id} stopped after {session.frames_processed} frames")

    # =========================================================================
    # CONFIRMATION
    # =========================================================================

    async def cancel(self) -> None:
        """
        Discard the candidate without contacting the service.

        Raises:
            AppException: INVALID_SCAN_STATE
        """
        async with self._lock:
            self._require(ScanPhase.AWAITING_CONFIRMATION)
            self._discard(self._session)

    def _discard(self, session: ScanSession) -> None:
        logger.info(f"Candidate {session.candidate} discarded")
        session.candidate = None
        session.active = False
        session.phase = ScanPhase.IDLE

    async def confirm(self) -> Optional[SubmissionResult]:
        """
        Submit the candidate to the remote service.

        Returns:
            The submission result, or None if the session was abandoned
            while the call was in flight

        Raises:
            AppException: INVALID_SCAN_STATE, REMOTE_LOOKUP_FAILED,
                REMOTE_RECORD_FAILED
        """
        async with self._lock:
            self._require(ScanPhase.AWAITING_CONFIRMATION)
            session = self._session
            session.phase = ScanPhase.SUBMITTING

        return await self._submit(session, session.candidate)

    async def submit_manual(self, barcode: str) -> Optional[SubmissionResult]:
        """
        Submit a hand-entered code from IDLE.

        Raises:
            AppException: INVALID_BARCODE, INVALID_SCAN_STATE,
                REMOTE_LOOKUP_FAILED, REMOTE_RECORD_FAILED
        """
        is_valid, normalized, error = BarcodeValidator().validate(barcode)
        if not is_valid:
            raise exceptions.invalid_barcode(barcode or "", error)

        async with self._lock:
            self._require(ScanPhase.IDLE)
            session = ScanSession(
                phase=ScanPhase.SUBMITTING,
                candidate=normalized,
                active=True,
                manual=True,
            )
            session.capture_done.set()
            self._session = session

        return await self._submit(session, normalized)

    async def _submit(self, session: ScanSession, barcode: str) -> Optional[SubmissionResult]:
        result = None
        applied = False

        try:
            result = await self._remote.submit(barcode)

        except AppException as e:
            if self._session is not session:
                logger.info(f"Ignoring failure for abandoned session {session.id}: {e.message}")
                return None
            session.error = e.message
            self.last_error = e
            logger.warning(f"⚠️ Submission of {barcode} failed: {e.message}")
            raise

        finally:
            applied = self._session is session
            if applied:
                session.active = False
                session.phase = ScanPhase.IDLE
                if result is not None:
                    self.last_result = result
                    self.last_error = None

        if not applied:
            logger.info(f"Ignoring result for abandoned session {session.id}")
            return None

        return result
