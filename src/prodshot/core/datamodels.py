"""核心数据结构定义：候选帧、选帧结果以及逐帧的分割/增强产物。"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@dataclass(slots=True, frozen=True)
class InlineImage:
    """随请求/响应内联传输的图片字节及其 MIME 类型。"""

    data: bytes
    mime_type: str


@dataclass(slots=True, frozen=True)
class Frame:
    """采样得到的单张候选帧，采集后不可变。"""

    index: int
    image_bytes: bytes
    mime_type: str = "image/jpeg"

    def as_inline(self) -> InlineImage:
        return InlineImage(data=self.image_bytes, mime_type=self.mime_type)


@dataclass(slots=True)
class SelectionResult:
    """选帧阶段输出：产品名与最佳帧索引（至多 max_frames 个）。"""

    product_name: str
    chosen_indices: List[int] = field(default_factory=list)


@dataclass(slots=True)
class SegmentationOutcome:
    """单帧抠图结果，segmented_image 为空表示该帧调用失败。"""

    source_index: int
    original_image: bytes
    segmented_image: Optional[InlineImage] = None

    @property
    def succeeded(self) -> bool:
        return self.segmented_image is not None


@dataclass(slots=True)
class EnhancementOutcome:
    """单帧增强结果；失败时回退为分割图，永不为空。"""

    source_index: int
    enhanced_image: InlineImage
    fell_back: bool = False


@dataclass(slots=True)
class GeneratedView:
    """对外结果单元：原图 / 抠图 / 增强图三联。"""

    original_frame: bytes
    segmented_image: bytes
    enhanced_image: bytes

    def to_dict(self) -> Dict[str, Any]:
        """序列化为接口约定的 base64 字段。"""

        return {
            "originalFrame": _b64(self.original_frame),
            "segmentedImage": _b64(self.segmented_image),
            "enhancedImage": _b64(self.enhanced_image),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedView":
        return cls(
            original_frame=base64.b64decode(data["originalFrame"]),
            segmented_image=base64.b64decode(data["segmentedImage"]),
            enhanced_image=base64.b64decode(data["enhancedImage"]),
        )


@dataclass(slots=True)
class ProcessedData:
    """流水线最终输出，generated_views 顺序与 chosen_indices 一致。"""

    identified_product: str
    generated_views: List[GeneratedView] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifiedProduct": self.identified_product,
            "generatedViews": [view.to_dict() for view in self.generated_views],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessedData":
        return cls(
            identified_product=str(data["identifiedProduct"]),
            generated_views=[GeneratedView.from_dict(entry) for entry in data.get("generatedViews", [])],
        )


def frames_from_images(images: Sequence[InlineImage]) -> List[Frame]:
    """按输入顺序为图片分配 0 起始的帧索引。"""

    return [Frame(index=idx, image_bytes=image.data, mime_type=image.mime_type) for idx, image in enumerate(images)]
