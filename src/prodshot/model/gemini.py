"""Gemini REST 客户端：批量图文分析（JSON 输出）与单图条件生成。"""

from __future__ import annotations

import base64
import binascii
import os
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import httpx

from prodshot.core import ConfigurationError, InlineImage, ModelResponseError, get_logger
from prodshot.core.config import GeminiConfig


class VisionModel(Protocol):
    """流水线依赖的远程模型接口，测试中以确定性 fake 替换。"""

    async def generate_json(self, model: str, prompt: str, images: Sequence[InlineImage]) -> str:
        """发送 prompt + 全部图片，返回 JSON 文本。"""

    async def generate_image(self, model: str, prompt: str, image: InlineImage) -> Optional[InlineImage]:
        """发送单张图片 + 指令，返回首个图片 part，没有则为 None。"""


def _inline_part(image: InlineImage) -> Dict[str, Any]:
    return {
        "inlineData": {
            "mimeType": image.mime_type,
            "data": base64.b64encode(image.data).decode("ascii"),
        }
    }


def _candidate_parts(data: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], Mapping):
        return []
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return [part for part in parts if isinstance(part, Mapping)]


def extract_text(data: Mapping[str, Any]) -> str:
    """拼接首个 candidate 中所有 text part。"""

    texts = [str(part.get("text") or "") for part in _candidate_parts(data)]
    return "".join(texts).strip()


def extract_image(data: Mapping[str, Any]) -> Optional[InlineImage]:
    """取首个携带 inline 图片数据的 part；REST 响应可能是 camelCase 或 snake_case。"""

    for part in _candidate_parts(data):
        inline = part.get("inlineData") or part.get("inline_data")
        if not isinstance(inline, Mapping):
            continue
        payload = inline.get("data")
        if not payload:
            continue
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ModelResponseError("Image part is not valid base64") from exc
        mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
        return InlineImage(data=raw, mime_type=str(mime_type))
    return None


class GeminiClient:
    """generateContent 端点封装；进程内构造一次，显式传入流水线。"""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set.")
        self._api_key = api_key
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self._http_client = http_client
        self.logger = get_logger(__name__)

    @classmethod
    def from_config(
        cls,
        config: GeminiConfig,
        *,
        env: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "GeminiClient":
        env_map = env if env is not None else os.environ
        api_key = (env_map.get(config.api_key_env) or "").strip()
        if not api_key:
            raise ConfigurationError(f"{config.api_key_env} is not set.")
        return cls(
            api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            http_client=http_client,
        )

    async def generate_json(self, model: str, prompt: str, images: Sequence[InlineImage]) -> str:
        parts = [{"text": prompt}, *(_inline_part(image) for image in images)]
        data = await self.generate_content(
            model,
            parts,
            generation_config={"responseMimeType": "application/json"},
        )
        return extract_text(data)

    async def generate_image(self, model: str, prompt: str, image: InlineImage) -> Optional[InlineImage]:
        parts = [_inline_part(image), {"text": prompt}]
        data = await self.generate_content(
            model,
            parts,
            generation_config={"responseModalities": ["IMAGE"]},
        )
        return extract_image(data)

    async def generate_content(
        self,
        model: str,
        parts: Sequence[Mapping[str, Any]],
        *,
        generation_config: Mapping[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """发起一次 generateContent 请求，非 2xx 或非 JSON 响应抛 ModelResponseError。"""

        model_path = model if model.startswith("models/") else f"models/{model}"
        url = f"{self.base_url}/{model_path}:generateContent"
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": list(parts)}]}
        if generation_config:
            payload["generationConfig"] = dict(generation_config)
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}

        self.logger.debug("POST %s (%d parts)", url, len(parts))
        if self._http_client is not None:
            resp = await self._http_client.post(url, json=payload, headers=headers, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=headers)

        if resp.status_code >= 400:
            raise ModelResponseError(f"Gemini failed ({resp.status_code}): {resp.text[:500]}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise ModelResponseError("Gemini returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise ModelResponseError("Gemini returned an unexpected payload")
        return data
