"""核心模块入口，聚合数据模型、错误、配置与日志工具供各阶段复用。"""

from .config import PipelineConfig, load_config
from .datamodels import (
    EnhancementOutcome,
    Frame,
    GeneratedView,
    InlineImage,
    ProcessedData,
    SegmentationOutcome,
    SelectionResult,
    frames_from_images,
)
from .errors import (
    ConfigurationError,
    FrameCaptureError,
    InputError,
    ModelResponseError,
    ProdshotError,
    SegmentationFailure,
    SelectionError,
    VideoOpenError,
)
from .logging_utils import get_logger, setup_logging

__all__ = [
    "Frame",
    "InlineImage",
    "SelectionResult",
    "SegmentationOutcome",
    "EnhancementOutcome",
    "GeneratedView",
    "ProcessedData",
    "frames_from_images",
    "ProdshotError",
    "InputError",
    "VideoOpenError",
    "FrameCaptureError",
    "ConfigurationError",
    "ModelResponseError",
    "SelectionError",
    "SegmentationFailure",
    "PipelineConfig",
    "load_config",
    "get_logger",
    "setup_logging",
]
