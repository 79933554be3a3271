"""
Camera capture for station and kiosk hardware (OpenCV).

A CameraCapture is a scoped session on one video device:

    with CameraCapture("environment") as camera:
        camera.capture()
        ...
        still = camera.confirm()

The device is released on every exit path. Only one session per process
may own a camera at a time.
"""

from enum import Enum
from typing import Optional
import logging
import threading

import cv2

from trinetra.core.exceptions import CameraBusyError, CameraUnavailableError, MissingEvidenceError
from trinetra.core.settings import settings

logger = logging.getLogger(__name__)


class FacingMode(str, Enum):
    ENVIRONMENT = "environment"
    USER = "user"


def device_index_for(facing_mode) -> int:
    """Map a facing-mode hint to the configured device index."""
    if FacingMode(facing_mode) == FacingMode.USER:
        return settings.CAMERA_USER_INDEX
    return settings.CAMERA_ENVIRONMENT_INDEX


class CameraCapture:

    _device_lock = threading.Lock()

    def __init__(self, facing_mode=FacingMode.ENVIRONMENT, quality: Optional[int] = None):
        self.facing_mode = FacingMode(facing_mode)
        self.device_index = device_index_for(self.facing_mode)
        self.quality = quality or settings.EVIDENCE_QUALITY
        self._cap = None
        self._still: Optional[bytes] = None
        self._owns_device = False

    def __enter__(self) -> "CameraCapture":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    @property
    def is_streaming(self) -> bool:
        return self._cap is not None

    @property
    def still(self) -> Optional[bytes]:
        return self._still

    def start(self):
        """Acquire the device and open a live stream."""
        if not self._owns_device:
            if not CameraCapture._device_lock.acquire(blocking=False):
                raise CameraBusyError("Camera is in use by another capture session")
            self._owns_device = True

        try:
            self._open_stream()
        except CameraUnavailableError:
            self.release()
            raise

    def _open_stream(self):
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self.device_index)
        if not cap.isOpened():
            cap.release()
            raise CameraUnavailableError(
                f"Camera {self.device_index} ({self.facing_mode.value}) is unavailable or permission was denied"
            )
        self._cap = cap
        logger.info(f"Camera stream opened: device {self.device_index} ({self.facing_mode.value})")

    def _close_stream(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug(f"Camera stream closed: device {self.device_index}")

    def capture(self) -> bytes:
        """
        Grab one frame as a JPEG still and stop the stream.

        Raises:
            CameraUnavailableError: no stream or the frame could not be read
        """
        if self._cap is None:
            raise CameraUnavailableError("Camera stream is not running")

        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._close_stream()
            raise CameraUnavailableError("Failed to read a frame from the camera")

        ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.quality])
        self._close_stream()
        if not ok:
            raise CameraUnavailableError("Failed to encode the captured frame")

        self._still = buffer.tobytes()
        return self._still

    def retake(self):
        """Discard the pending still and restart the stream."""
        self._still = None
        self._open_stream()

    def confirm(self) -> bytes:
        """Accept the pending still and release the device."""
        if self._still is None:
            raise MissingEvidenceError("No photo has been captured")
        still = self._still
        self.release()
        return still

    def cancel(self):
        self._still = None
        self.release()

    def release(self):
        """Stop the stream and give up the device. Safe to call repeatedly."""
        self._close_stream()
        if self._owns_device:
            self._owns_device = False
            CameraCapture._device_lock.release()
