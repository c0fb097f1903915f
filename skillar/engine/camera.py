"""
Camera Capture
==============
The server never touches a real camera: the browser (or CLI) owns the device and
pushes still frames. A FrameStream is the server-side end of that feed.

  acquire_stream(facing)  → FrameStream, or PermissionDenied if the client refused
  capture_frame(stream)   → latest pushed frame (b"" if none yet)
  release(stream)         → closes the stream; later frames are dropped
"""

import logging
from typing import Protocol

from ..errors import PermissionDenied

logger = logging.getLogger(__name__)

PERMISSION_MESSAGE = "Camera access denied. Please enable camera permissions."


class FrameStream:
    def __init__(self, facing: str):
        self.facing = facing
        self.latest: bytes = b""
        self.active = True

    def push(self, frame: bytes):
        if self.active:
            self.latest = frame


class CameraCapture(Protocol):
    def acquire_stream(self, facing: str) -> FrameStream:
        ...

    def capture_frame(self, stream: FrameStream) -> bytes:
        ...

    def release(self, stream: FrameStream) -> None:
        ...


class FrameFeedCamera:
    """Camera fed by frames the client uploads. `permission_granted` is what the client reported."""

    def __init__(self, permission_granted: bool = True):
        self.permission_granted = permission_granted
        self.stream: FrameStream | None = None

    def acquire_stream(self, facing: str = "environment") -> FrameStream:
        if not self.permission_granted:
            raise PermissionDenied(PERMISSION_MESSAGE)
        if self.stream is not None and self.stream.active:
            return self.stream
        self.stream = FrameStream(facing)
        logger.debug("camera stream acquired (%s)", facing)
        return self.stream

    def push(self, frame: bytes):
        if self.stream is not None:
            self.stream.push(frame)

    def capture_frame(self, stream: FrameStream) -> bytes:
        return stream.latest

    def release(self, stream: FrameStream) -> None:
        stream.active = False
        stream.latest = b""
        if self.stream is stream:
            self.stream = None
        logger.debug("camera stream released")
