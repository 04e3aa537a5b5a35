"""增强阶段：把抠好的产品放到中性棚拍背景上，失败时回退到抠图。"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from prodshot.core import EnhancementOutcome, InlineImage, SegmentationOutcome, get_logger
from prodshot.core.config import EnhancementConfig
from prodshot.model import VisionModel

from .fanout import gather_settled

logger = get_logger(__name__)


async def enhance_images(
    model: VisionModel,
    outcomes: Sequence[SegmentationOutcome],
    config: EnhancementConfig,
) -> List[EnhancementOutcome]:
    """每个存活的抠图都产出一个结果，顺序与输入一致。"""

    cutouts: List[Tuple[int, InlineImage]] = [
        (outcome.source_index, outcome.segmented_image)
        for outcome in outcomes
        if outcome.segmented_image is not None
    ]

    async def _enhance(item: Tuple[int, InlineImage]) -> Optional[InlineImage]:
        return await model.generate_image(config.model, config.prompt, item[1])

    results = await gather_settled(cutouts, _enhance, stage="enhancement", key=lambda item: item[0])

    enhanced: List[EnhancementOutcome] = []
    for (source_index, cutout), result in zip(cutouts, results):
        if result is None:
            enhanced.append(EnhancementOutcome(source_index=source_index, enhanced_image=cutout, fell_back=True))
        else:
            enhanced.append(EnhancementOutcome(source_index=source_index, enhanced_image=result))
    fallbacks = sum(1 for item in enhanced if item.fell_back)
    logger.info("Enhancement finished for %d frames (%d fell back to cut-out)", len(enhanced), fallbacks)
    return enhanced
