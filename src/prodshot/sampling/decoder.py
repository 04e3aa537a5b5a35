"""媒体解码器：单一播放位置的 seek + 抓帧接口，以及基于 OpenCV 的实现。"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

import cv2
import numpy as np
from numpy.typing import NDArray

from prodshot.core import FrameCaptureError, VideoOpenError


class MediaDecoder(Protocol):
    """同一时刻只有一个播放位置，调用方必须串行 seek/capture。"""

    mime_type: str

    def seek_to(self, timestamp: float) -> None:
        """定位到 timestamp（秒），返回时当前帧已就绪。"""

    def capture_current_frame(self) -> bytes:
        """将当前帧编码为静态图片字节。"""


class OpenCVDecoder:
    """cv2.VideoCapture 封装，按毫秒 seek，JPEG 编码输出。"""

    mime_type = "image/jpeg"

    def __init__(self, video_path: str | Path, *, jpeg_quality: int = 95) -> None:
        self.video_path = Path(video_path)
        self.jpeg_quality = jpeg_quality
        self._capture = cv2.VideoCapture(str(self.video_path))
        if not self._capture.isOpened():
            raise VideoOpenError(f"Unable to open video: {self.video_path}")
        self._current: Optional[NDArray[np.uint8]] = None

    @property
    def duration(self) -> float:
        fps = self._capture.get(cv2.CAP_PROP_FPS) or 0.0
        frame_count = self._capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0
        if fps > 0 and frame_count > 0:
            return float(frame_count / fps)
        return self._duration_from_end()

    def _duration_from_end(self) -> float:
        # 部分容器（如浏览器录制的 WebM）不写总帧数，跳到末尾读取播放位置
        if not self._capture.set(cv2.CAP_PROP_POS_AVI_RATIO, 1.0):
            return 0.0
        position_ms = self._capture.get(cv2.CAP_PROP_POS_MSEC) or 0.0
        self._capture.set(cv2.CAP_PROP_POS_MSEC, 0.0)
        return max(float(position_ms) / 1000.0, 0.0)

    def seek_to(self, timestamp: float) -> None:
        self._current = None
        if not self._capture.set(cv2.CAP_PROP_POS_MSEC, float(timestamp) * 1000.0):
            raise FrameCaptureError(f"Video seeking failed at {timestamp:.3f}s")
        success, frame = self._capture.read()
        if not success or frame is None:
            raise FrameCaptureError(f"Video seeking failed at {timestamp:.3f}s")
        self._current = frame

    def capture_current_frame(self) -> bytes:
        if self._current is None:
            raise FrameCaptureError("Failed to extract frame: no frame decoded at current position")
        ok, buffer = cv2.imencode(".jpg", self._current, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality])
        if not ok:
            raise FrameCaptureError("Failed to extract frame.")
        return buffer.tobytes()

    def close(self) -> None:
        self._capture.release()

    def __enter__(self) -> "OpenCVDecoder":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def probe_duration(video_path: str | Path) -> float:
    """读取 fps 与总帧数估算时长，缺少帧数时跳到末尾读取；无法打开时抛 VideoOpenError。"""

    with OpenCVDecoder(video_path) as decoder:
        return decoder.duration
