"""远程视觉/生成模型客户端。"""

from .gemini import GeminiClient, VisionModel, extract_image, extract_text

__all__ = [
    "GeminiClient",
    "VisionModel",
    "extract_image",
    "extract_text",
]
