"""选帧阶段：一次批量调用，识别产品并挑出最佳帧索引。"""

from __future__ import annotations

import json
import re
from typing import Any, List, Sequence

from prodshot.core import Frame, InputError, SelectionError, SelectionResult, get_logger
from prodshot.core.config import SelectionConfig
from prodshot.model import VisionModel

_CODE_BLOCK_PATTERN = re.compile(r"^```(?:json)?\s*(?P<body>.+?)\s*```$", re.DOTALL)

logger = get_logger(__name__)


def default_indices(frame_count: int, max_frames: int) -> List[int]:
    """模型未给出索引时回退到前 max_frames 帧。"""

    return list(range(min(frame_count, max_frames)))


def _strip_code_block(text: str) -> str:
    content = text.strip()
    match = _CODE_BLOCK_PATTERN.match(content)
    if match:
        return match.group("body").strip()
    return content


def parse_selection(text: str, frame_count: int, config: SelectionConfig) -> SelectionResult:
    """解析模型 JSON；字段缺失按默认值补齐，整体不可解析则抛 SelectionError。

    返回的索引只做截断，不做范围校验，越界项由编排器丢弃。
    """

    content = _strip_code_block(text or "")
    if not content:
        raise SelectionError("Frame selection returned an empty response")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise SelectionError(f"Frame selection returned malformed JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SelectionError("Frame selection response is not a JSON object")

    product_name = payload.get("product_name")
    if not isinstance(product_name, str) or not product_name.strip():
        product_name = config.default_product_name

    raw_indices: Any = payload.get("best_frame_indices")
    if isinstance(raw_indices, list) and raw_indices:
        indices = list(raw_indices[: config.max_frames])
    else:
        indices = default_indices(frame_count, config.max_frames)

    return SelectionResult(product_name=product_name.strip(), chosen_indices=indices)


async def select_frames(model: VisionModel, frames: Sequence[Frame], config: SelectionConfig) -> SelectionResult:
    """发送全部候选帧 + 选帧指令，单次调用，不重试。"""

    if not frames:
        raise InputError("No frames were uploaded.")

    logger.info("Selecting best frames among %d candidates", len(frames))
    try:
        text = await model.generate_json(config.model, config.prompt, [frame.as_inline() for frame in frames])
    except Exception as exc:
        raise SelectionError(f"Frame selection failed: {exc}") from exc

    result = parse_selection(text, len(frames), config)
    logger.info("Identified product '%s', chosen indices %s", result.product_name, result.chosen_indices)
    return result
