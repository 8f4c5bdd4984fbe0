"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Frame-by-frame barcode scanning over a WebSocket connection, for clients
that own the camera (e.g. a browser using getUserMedia).

Protocol:
---------
1. Client connects; server sends {"type": "ready", "session_id": ...}
2. Client sends {"type": "frame", "frame": <base64 image>}
3. On a candidate the server sends
   {"type": "detection", "frame_id": n, "code": "...", "run_count": n}
   and ignores further frames until the client answers:
   - {"type": "confirm"} → lookup-or-record, server sends {"type": "product", ...}
   - {"type": "cancel"}  → candidate discarded, scanning resumes
4. {"type": "stop"} ends the connection

==============================================================================
"""

import base64
import binascii
import logging
import uuid
from typing import Optional

import cv2
import numpy as np
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends

from barcode_scanner.config import get_settings
from barcode_scanner.core.dependencies import get_barcode_service
from barcode_scanner.core.exceptions import AppException
from barcode_scanner.scanner.pipeline import DecodePipeline
from barcode_scanner.services.barcode_service import BarcodeService


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


def decode_frame_payload(payload: str) -> Optional[np.ndarray]:
    """Base64-encoded image → BGR frame, or None if it cannot be decoded."""
    if not payload or not isinstance(payload, str):
        return None

    # Accept data URLs as sent by canvas.toDataURL()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]

    try:
        img_data = base64.b64decode(payload)
    except (binascii.Error, ValueError):
        return None

    nparr = np.frombuffer(img_data, np.uint8)
    if nparr.size == 0:
        return None
    return cv2.imdecode(nparr, cv2.IMREAD_COLOR)


class ScannerWebSocketHandler:
    """
    Handler for one scanning WebSocket connection.

    Keeps the same capture/confirmation rules as the scan session: one
    candidate at a time, nothing is sent to the service until confirmed.
    """

    def __init__(self, websocket: WebSocket, service: BarcodeService, pipeline: DecodePipeline):
        self._websocket = websocket
        self._service = service
        self._pipeline = pipeline
        self._session_id = uuid.uuid4().hex
        self._candidate: Optional[str] = None

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def handle_frame(self, data: dict, frame_count: int) -> None:
        """Handle frame message from client."""
        # Awaiting confirmation: frames are dropped
        if self._candidate is not None:
            return

        frame = decode_frame_payload(data.get("frame", ""))
        if frame is None:
            await self.send_error("Frame could not be decoded", "INVALID_FRAME")
            return

        result = self._pipeline.decode(frame)
        if not result.ok:
            return

        self._candidate = result.code
        logger.info(f"📦 Candidate {result.code} on frame {frame_count}")

        await self._websocket.send_json({
            "type": "detection",
            "frame_id": frame_count,
            "code": result.code,
            "run_count": result.run_count
        })

    async def handle_confirm(self) -> None:
        """Look up the candidate and report the product."""
        if self._candidate is None:
            await self.send_error("No candidate to confirm", "INVALID_SCAN_STATE")
            return

        code, self._candidate = self._candidate, None

        try:
            product, source = self._service.lookup_or_record(code)
        except AppException as e:
            await self.send_error(e.message, e.code)
            return

        await self._websocket.send_json({
            "type": "product",
            "barcode": code,
            "source": source,
            "product": product.model_dump()
        })

    async def handle_cancel(self) -> None:
        if self._candidate is not None:
            logger.info(f"Candidate {self._candidate} discarded")
        self._candidate = None

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info(f"📱 Scanner WebSocket connected ({self._session_id})")

        await self._websocket.send_json({"type": "ready", "session_id": self._session_id})

        try:
            frame_count = 0

            while True:
                try:
                    data = await self._websocket.receive_json()
                except ValueError:
                    await self.send_error("Message is not valid JSON", "UNKNOWN_MESSAGE")
                    continue

                if not isinstance(data, dict):
                    await self.send_error("Message must be a JSON object", "UNKNOWN_MESSAGE")
                    continue

                message_type = data.get("type")

                if message_type == "frame":
                    frame_count += 1
                    await self.handle_frame(data, frame_count)

                elif message_type == "confirm":
                    await self.handle_confirm()

                elif message_type == "cancel":
                    await self.handle_cancel()

                elif message_type == "stop":
                    logger.info("🛑 Client requested stop")
                    await self._websocket.close()
                    break

                else:
                    await self.send_error(f"Unknown message type: {message_type}", "UNKNOWN_MESSAGE")

        except WebSocketDisconnect:
            logger.info("📱 Client disconnected")
        finally:
            logger.info(f"✅ Scanner WebSocket closed ({self._session_id})")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    service: BarcodeService = Depends(get_barcode_service)
):
    """Real-time barcode scanning via WebSocket."""
    pipeline = DecodePipeline.from_settings(get_settings())
    handler = ScannerWebSocketHandler(websocket, service, pipeline)
    await handler.run()
