"""共享测试夹具：确定性的假模型与候选帧构造。"""

from __future__ import annotations

import asyncio
import json
from typing import List, Optional, Sequence, Tuple

import pytest

from prodshot.core import Frame, InlineImage


def make_frames(count: int) -> List[Frame]:
    return [Frame(index=idx, image_bytes=f"frame-{idx}".encode(), mime_type="image/jpeg") for idx in range(count)]


class FakeVisionModel:
    """按输入字节决定输出：抠图输出 seg:<原图>，增强输出 enh:<抠图>。"""

    def __init__(
        self,
        selection: object = None,
        *,
        fail_segment: Sequence[int] = (),
        empty_segment: Sequence[int] = (),
        fail_enhance: Sequence[int] = (),
        empty_enhance: Sequence[int] = (),
    ) -> None:
        if selection is None:
            selection = {"product_name": "Widget", "best_frame_indices": [0, 1, 2, 3, 4]}
        self.selection = selection
        self.fail_segment = set(fail_segment)
        self.empty_segment = set(empty_segment)
        self.fail_enhance = set(fail_enhance)
        self.empty_enhance = set(empty_enhance)
        self.json_calls: List[Tuple[str, str, int]] = []
        self.image_calls: List[Tuple[str, str, bytes]] = []
        self.events: List[str] = []

    async def generate_json(self, model: str, prompt: str, images: Sequence[InlineImage]) -> str:
        self.json_calls.append((model, prompt, len(images)))
        self.events.append("select")
        if isinstance(self.selection, Exception):
            raise self.selection
        if isinstance(self.selection, str):
            return self.selection
        return json.dumps(self.selection)

    async def generate_image(self, model: str, prompt: str, image: InlineImage) -> Optional[InlineImage]:
        self.image_calls.append((model, prompt, image.data))
        enhancing = image.data.startswith(b"seg:")
        stage = "enhance" if enhancing else "segment"
        frame_index = int(image.data.rsplit(b"-", 1)[-1])
        self.events.append(f"{stage}-start:{frame_index}")
        # 反序完成，验证结果按帧索引而非完成顺序对齐
        await asyncio.sleep(0.001 * (10 - frame_index % 10))
        self.events.append(f"{stage}-end:{frame_index}")
        if enhancing:
            if frame_index in self.fail_enhance:
                raise RuntimeError(f"enhance boom {frame_index}")
            if frame_index in self.empty_enhance:
                return None
            return InlineImage(data=b"enh:" + image.data, mime_type="image/png")
        if frame_index in self.fail_segment:
            raise RuntimeError(f"segment boom {frame_index}")
        if frame_index in self.empty_segment:
            return None
        return InlineImage(data=b"seg:" + image.data, mime_type="image/png")


@pytest.fixture
def frames() -> List[Frame]:
    return make_frames(30)


@pytest.fixture
def fake_model_cls():
    return FakeVisionModel


@pytest.fixture
def frame_factory():
    return make_frames
