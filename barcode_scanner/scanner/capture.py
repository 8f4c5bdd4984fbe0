"""
==============================================================================
Frame Capture Module
==============================================================================

Frame sources feeding the scan session.

Classes:
--------
- FrameSource: async open/read/close contract, usable with `async with`
- CameraStream: OpenCV VideoCapture device selected by facing mode
- ImageSequenceSource: replays still images or in-memory frames

Resource Model:
--------------
A source is owned by exactly one scan session. It is opened when the
session starts capturing and closed on every exit from capturing:

    stream = CameraStream(index)
    await stream.open()            # raises CAMERA_ACCESS_DENIED
    async with stream:             # close() guaranteed on exit
        frame = await stream.read()

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

import cv2
import numpy as np

from barcode_scanner.core import exceptions


# Module logger
logger = logging.getLogger(__name__)


class FrameSource:
    """
    Base class for frame sources.

    Subclasses implement _open, _read and _close; this class tracks the
    open state and makes close() idempotent.
    """

    def __init__(self) -> None:
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    @property
    def exhausted(self) -> bool:
        """True once the source will never produce another frame."""
        return False

    async def open(self) -> None:
        """
        Acquire the underlying device.

        Raises:
            AppException: CAMERA_ACCESS_DENIED
        """
        if self._opened:
            return
        await self._open()
        self._opened = True

    async def read(self) -> Optional[np.ndarray]:
        """Next frame, or None when no frame is available this tick."""
        if not self._opened:
            return None
        return await self._read()

    async def close(self) -> None:
        """Release the underlying device. Safe to call more than once."""
        if not self._opened:
            return
        self._opened = False
        await self._close()

    async def __aenter__(self) -> "FrameSource":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _open(self) -> None:
        raise NotImplementedError

    async def _read(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    async def _close(self) -> None:
        raise NotImplementedError


class CameraStream(FrameSource):
    """
    Camera device read through OpenCV.

    Blocking capture calls run in a worker thread so the event loop keeps
    serving between ticks.

    Example:
        >>> stream = CameraStream.for_facing_mode("environment", settings)
        >>> async with stream:
        ...     frame = await stream.read()
    """

    def __init__(self, camera_index: int = 0) -> None:
        super().__init__()
        self._camera_index = camera_index
        self._cap: Optional[cv2.VideoCapture] = None

    @classmethod
    def for_facing_mode(cls, facing_mode: str, settings) -> "CameraStream":
        """Pick the device index configured for a facing mode."""
        if facing_mode == "user":
            return cls(settings.user_camera_index)
        return cls(settings.environment_camera_index)

    @property
    def camera_index(self) -> int:
        return self._camera_index

    async def _open(self) -> None:
        cap = await asyncio.to_thread(cv2.VideoCapture, self._camera_index)

        if not cap.isOpened():
            cap.release()
            logger.error(f"Cannot open camera {self._camera_index}")
            raise exceptions.camera_access_denied(
                f"Failed to access camera {self._camera_index}"
            )

        self._cap = cap
        logger.info(f"📷 Camera {self._camera_index} opened")

    async def _read(self) -> Optional[np.ndarray]:
        ret, frame = await asyncio.to_thread(self._cap.read)
        if not ret:
            logger.warning("Failed to read frame")
            return None
        return frame

    async def _close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        logger.info(f"📷 Camera {self._camera_index} released")


class ImageSequenceSource(FrameSource):
    """
    Replays a fixed list of frames, then keeps returning None.

    Items may be numpy arrays or image paths (read with cv2.imread).
    With loop=True the sequence restarts after the last frame.
    """

    def __init__(
        self,
        frames: Iterable[Union[np.ndarray, str, Path]],
        loop: bool = False
    ) -> None:
        super().__init__()
        self._items = list(frames)
        self._loop = loop
        self._frames: List[np.ndarray] = []
        self._position = 0

    @property
    def exhausted(self) -> bool:
        if self._loop or not self._opened:
            return False
        return self._position >= len(self._frames)

    async def _open(self) -> None:
        frames = []
        for item in self._items:
            if isinstance(item, np.ndarray):
                frames.append(item)
                continue

            path = Path(item)
            frame = cv2.imread(str(path))
            if frame is None:
                logger.error(f"Could not read image: {path}")
                raise exceptions.camera_access_denied(f"Could not read image: {path}")
            frames.append(frame)

        self._frames = frames
        self._position = 0

    async def _read(self) -> Optional[np.ndarray]:
        if not self._frames:
            return None

        if self._position >= len(self._frames):
            if not self._loop:
                return None
            self._position = 0

        frame = self._frames[self._position]
        self._position += 1
        return frame

    async def _close(self) -> None:
        self._frames = []


# Factory signature used by the scan session: facing mode → unopened source
FrameSourceFactory = Callable[[str], FrameSource]


def camera_factory(settings) -> FrameSourceFactory:
    """FrameSourceFactory opening real cameras per configured facing mode."""
    def factory(facing_mode: str) -> FrameSource:
        return CameraStream.for_facing_mode(facing_mode, settings)
    return factory
