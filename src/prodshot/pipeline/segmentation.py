"""抠图阶段：逐帧并发生成透明背景的产品图，允许部分失败。"""

from __future__ import annotations

from typing import List, Optional, Sequence

from prodshot.core import Frame, InlineImage, SegmentationFailure, SegmentationOutcome, get_logger
from prodshot.core.config import SegmentationConfig
from prodshot.model import VisionModel

from .fanout import gather_settled

SEGMENTATION_FAILURE_MESSAGE = "AI failed to segment the product from any frames."

logger = get_logger(__name__)


async def segment_frames(
    model: VisionModel,
    frames: Sequence[Frame],
    product_name: str,
    config: SegmentationConfig,
) -> List[SegmentationOutcome]:
    """返回成功帧的结果（保持输入顺序）；全部失败时抛 SegmentationFailure。"""

    prompt = config.render_prompt(product_name)

    async def _segment(frame: Frame) -> Optional[InlineImage]:
        return await model.generate_image(config.model, prompt, frame.as_inline())

    results = await gather_settled(frames, _segment, stage="segmentation", key=lambda frame: frame.index)
    outcomes = [
        SegmentationOutcome(source_index=frame.index, original_image=frame.image_bytes, segmented_image=result)
        for frame, result in zip(frames, results)
    ]
    survivors = [outcome for outcome in outcomes if outcome.succeeded]
    logger.info("Segmentation kept %d / %d frames", len(survivors), len(outcomes))
    if not survivors:
        raise SegmentationFailure(SEGMENTATION_FAILURE_MESSAGE)
    return survivors
