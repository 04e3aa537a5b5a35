"""多阶段处理流水线：选帧、抠图、增强与编排。"""

from .enhancement import enhance_images
from .fanout import gather_settled
from .orchestrator import ProductShotPipeline, resolve_indices
from .segmentation import SEGMENTATION_FAILURE_MESSAGE, segment_frames
from .selection import default_indices, parse_selection, select_frames

__all__ = [
    "ProductShotPipeline",
    "resolve_indices",
    "select_frames",
    "parse_selection",
    "default_indices",
    "segment_frames",
    "SEGMENTATION_FAILURE_MESSAGE",
    "enhance_images",
    "gather_settled",
]
