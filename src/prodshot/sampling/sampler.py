"""候选帧采样：等间距时间点 + 串行 seek/抓帧。"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, List

from prodshot.core import Frame, FrameCaptureError, InputError, get_logger

from .decoder import MediaDecoder, OpenCVDecoder

DEFAULT_FRAME_COUNT = 30
MIN_DURATION_SECONDS = 1.0

logger = get_logger(__name__)


def compute_timestamps(
    duration: float,
    count: int = DEFAULT_FRAME_COUNT,
    *,
    min_duration: float = MIN_DURATION_SECONDS,
) -> List[float]:
    """返回 t_i = D/(N+1) * i (i=1..N)，严格递增且落在 (0, D) 内。"""

    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise InputError("Video duration invalid or too short.")
    if math.isnan(duration) or math.isinf(duration) or duration <= min_duration:
        raise InputError("Video duration invalid or too short.")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InputError(f"Frame count must be a positive integer, got {count!r}")
    step = duration / (count + 1)
    return [step * i for i in range(1, count + 1)]


def sample_frames(
    decoder: MediaDecoder,
    duration: float,
    count: int = DEFAULT_FRAME_COUNT,
    *,
    min_duration: float = MIN_DURATION_SECONDS,
    progress_callback: Callable[[float], None] | None = None,
) -> List[Frame]:
    """逐个时间点 seek 并抓帧；任一时间点失败则整体失败，不返回部分结果。"""

    timestamps = compute_timestamps(duration, count, min_duration=min_duration)
    logger.info("Sampling %d frames from %.2fs of media", len(timestamps), duration)

    frames: List[Frame] = []
    for index, timestamp in enumerate(timestamps):
        try:
            decoder.seek_to(timestamp)
            image_bytes = decoder.capture_current_frame()
        except FrameCaptureError:
            raise
        except Exception as exc:
            raise FrameCaptureError(f"Video seeking failed at {timestamp:.3f}s: {exc}") from exc
        frames.append(Frame(index=index, image_bytes=image_bytes, mime_type=decoder.mime_type))
        if progress_callback is not None:
            progress_callback((index + 1) / len(timestamps))
    return frames


def sample_video(
    video_path: str | Path,
    count: int = DEFAULT_FRAME_COUNT,
    *,
    jpeg_quality: int = 95,
    min_duration: float = MIN_DURATION_SECONDS,
) -> List[Frame]:
    """便捷入口：打开视频文件、探测时长并采样。"""

    with OpenCVDecoder(video_path, jpeg_quality=jpeg_quality) as decoder:
        return sample_frames(decoder, decoder.duration, count, min_duration=min_duration)
