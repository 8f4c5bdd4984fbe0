"""
==============================================================================
Scanner Package - Barcode Detection
==============================================================================

Heuristic barcode decoding and the scan session state machine.

Modules:
--------
- pipeline: grayscale → threshold → run lengths → digits
- capture: camera and image frame sources
- session: IDLE / CAPTURING / AWAITING_CONFIRMATION / SUBMITTING

==============================================================================
"""

from .pipeline import DecodePipeline, DecodeResult, DecodeStatus
from .capture import CameraStream, FrameSource, ImageSequenceSource, camera_factory
from .session import ScanPhase, ScanSession, ScanSessionController

__all__ = [
    "DecodePipeline",
    "DecodeResult",
    "DecodeStatus",
    "CameraStream",
    "FrameSource",
    "ImageSequenceSource",
    "camera_factory",
    "ScanPhase",
    "ScanSession",
    "ScanSessionController",
]
