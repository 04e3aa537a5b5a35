"""流水线编排：选帧 -> 抠图 -> 增强，按 source_index 组装三联结果。"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Mapping, Sequence

from prodshot.core import (
    Frame,
    GeneratedView,
    InputError,
    PipelineConfig,
    ProcessedData,
    SegmentationOutcome,
    get_logger,
)
from prodshot.model import VisionModel

from .enhancement import enhance_images
from .segmentation import segment_frames
from .selection import default_indices, select_frames

ProgressCallback = Callable[[str, float], None]

logger = get_logger(__name__)


def resolve_indices(
    indices: Sequence[Any],
    frames_by_index: Mapping[int, Frame],
    *,
    max_frames: int,
) -> List[int]:
    """丢弃越界、非整数与重复索引；全部无效时回退到默认前几帧。"""

    resolved: List[int] = []
    discarded: List[Any] = []
    for value in indices:
        # JSON 数字 2.0 与 2 等价
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int) or value not in frames_by_index:
            discarded.append(value)
            continue
        if value in resolved:
            discarded.append(value)
            continue
        resolved.append(value)
    if discarded:
        logger.warning("Discarded invalid frame indices from selection: %s", discarded)
    if not resolved:
        fallback = [idx for idx in default_indices(len(frames_by_index), max_frames) if idx in frames_by_index]
        logger.warning("No valid frame indices left, falling back to %s", fallback)
        return fallback
    return resolved


class ProductShotPipeline:
    """持有单个模型客户端实例，阶段之间严格同步，不交错执行。"""

    def __init__(self, model: VisionModel, config: PipelineConfig | None = None) -> None:
        self.model = model
        self.config = config or PipelineConfig()
        self.logger = logger

    async def run(
        self,
        frames: Sequence[Frame],
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> ProcessedData:
        """执行完整流水线；任一致命错误直接向上抛出，不返回部分结果。"""

        if not frames:
            raise InputError("No frames were uploaded.")

        frames_by_index: Dict[int, Frame] = {frame.index: frame for frame in frames}
        self.logger.info("Processing %d candidate frames", len(frames))

        selection = await select_frames(self.model, frames, self.config.selection)
        chosen = resolve_indices(
            selection.chosen_indices,
            frames_by_index,
            max_frames=self.config.selection.max_frames,
        )
        _notify(progress_callback, "selection", 1.0)

        selected_frames = [frames_by_index[idx] for idx in chosen]
        segmented = await segment_frames(
            self.model,
            selected_frames,
            selection.product_name,
            self.config.segmentation,
        )
        _notify(progress_callback, "segmentation", 1.0)

        enhanced = await enhance_images(self.model, segmented, self.config.enhancement)
        _notify(progress_callback, "enhancement", 1.0)

        views = _assemble_views(segmented, {item.source_index: item.enhanced_image.data for item in enhanced})
        self.logger.info("Produced %d views for '%s'", len(views), selection.product_name)
        return ProcessedData(identified_product=selection.product_name, generated_views=views)

    def run_sync(
        self,
        frames: Sequence[Frame],
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> ProcessedData:
        """同步入口，供 CLI 使用。"""

        return asyncio.run(self.run(frames, progress_callback=progress_callback))


def _assemble_views(segmented: Sequence[SegmentationOutcome], enhanced: Mapping[int, bytes]) -> List[GeneratedView]:
    views: List[GeneratedView] = []
    for outcome in segmented:
        if outcome.segmented_image is None:
            continue
        cutout = outcome.segmented_image.data
        views.append(
            GeneratedView(
                original_frame=outcome.original_image,
                segmented_image=cutout,
                enhanced_image=enhanced.get(outcome.source_index, cutout),
            )
        )
    return views


def _notify(callback: ProgressCallback | None, stage: str, fraction: float) -> None:
    if callback is not None:
        callback(stage, fraction)
