"""候选帧采样模块。"""

from .decoder import MediaDecoder, OpenCVDecoder, probe_duration
from .sampler import DEFAULT_FRAME_COUNT, compute_timestamps, sample_frames, sample_video

__all__ = [
    "MediaDecoder",
    "OpenCVDecoder",
    "probe_duration",
    "DEFAULT_FRAME_COUNT",
    "compute_timestamps",
    "sample_frames",
    "sample_video",
]
