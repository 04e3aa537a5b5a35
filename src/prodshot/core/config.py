"""配置加载工具，集中管理仓内/环境参数。"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, MutableMapping, Sequence, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError

CONFIG_ENV_KEY = "PRODSHOT_CONFIG_PATH"

DEFAULT_SELECTION_PROMPT = (
    "Analyze all frames. Identify the main product. Select the 5 best frames showcasing it. "
    'Return JSON with "product_name" and "best_frame_indices" (an array of 5 zero-based indices). '
    "Criteria: product is focused, clear, well-lit; avoid people/distractions; varied angles."
)
DEFAULT_SEGMENTATION_PROMPT = (
    "This image features a '{product_name}'. "
    "Create a new image showing ONLY that product with a transparent background."
)
DEFAULT_ENHANCEMENT_PROMPT = (
    "Place this product on a clean, modern surface with soft, neutral studio lighting "
    "for a professional product shot."
)


class SamplerConfig(BaseModel):
    """候选帧采样参数。"""

    frame_count: int = 30
    jpeg_quality: int = 95
    min_duration_seconds: float = 1.0


class SelectionConfig(BaseModel):
    """选帧 + 产品识别阶段参数。"""

    model: str = "gemini-2.5-flash"
    max_frames: int = 5
    default_product_name: str = "Product"
    prompt: str = DEFAULT_SELECTION_PROMPT


class SegmentationConfig(BaseModel):
    """抠图阶段参数，prompt 模板需包含 {product_name}。"""

    model: str = "gemini-2.5-flash-image"
    prompt_template: str = DEFAULT_SEGMENTATION_PROMPT

    def render_prompt(self, product_name: str) -> str:
        return self.prompt_template.format(product_name=product_name)


class EnhancementConfig(BaseModel):
    """棚拍增强阶段参数。"""

    model: str = "gemini-2.5-flash-image"
    prompt: str = DEFAULT_ENHANCEMENT_PROMPT


class GeminiConfig(BaseModel):
    """远程模型连接参数；密钥只从环境变量读取，不落配置。"""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env: str = "GEMINI_API_KEY"
    timeout_seconds: float = 120.0


class PipelineConfig(BaseModel):
    """聚合各阶段配置。"""

    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    enhancement: EnhancementConfig = Field(default_factory=EnhancementConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    raw: Dict[str, Any] = Field(default_factory=dict, description="原始配置字典，便于调试。")

    def model_post_init(self, __context: Any) -> None:  # type: ignore[override]
        # 保留原始配置便于后续 diff/日志输出
        if not self.raw:
            self.raw = self.to_raw_dict()

    def to_raw_dict(self) -> Dict[str, Any]:
        """导出基础 dict，供日志输出使用。"""

        return {
            "sampler": self.sampler.model_dump(),
            "selection": self.selection.model_dump(),
            "segmentation": self.segmentation.model_dump(),
            "enhancement": self.enhancement.model_dump(),
            "gemini": self.gemini.model_dump(),
        }


def _default_config_path() -> Path:
    return Path(__file__).resolve().parents[3] / "configs" / "baseline.yaml"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"配置文件 {path} 内容需为字典")
        return data


def _load_local_env() -> None:
    """读取仓库根目录或当前目录下的 .env，已有环境变量不覆盖。"""

    load_dotenv(Path.cwd() / ".env", override=False)
    load_dotenv(Path(__file__).resolve().parents[3] / ".env", override=False)


ENV_OVERRIDE_MAP: Dict[str, Tuple[Sequence[Sequence[str]], Callable[[str], Any]]] = {
    "PRODSHOT_FRAME_COUNT": ((("sampler", "frame_count"),), int),
    "PRODSHOT_SELECTION_MODEL": ((("selection", "model"),), str),
    "PRODSHOT_IMAGE_MODEL": ((("segmentation", "model"), ("enhancement", "model")), str),
    "PRODSHOT_GEMINI_TIMEOUT": ((("gemini", "timeout_seconds"),), float),
}


def _apply_env_overrides(data: MutableMapping[str, Any], env: Mapping[str, str]) -> None:
    for env_key, (paths, caster) in ENV_OVERRIDE_MAP.items():
        if env_key not in env:
            continue
        try:
            value = caster(env[env_key])
        except ValueError as exc:
            raise ConfigurationError(f"环境变量 {env_key} 取值非法: {env[env_key]!r}") from exc
        for path in paths:
            _set_nested_value(data, path, value)


def _set_nested_value(target: MutableMapping[str, Any], path: Sequence[str], value: Any) -> None:
    cursor: MutableMapping[str, Any] = target
    *parents, last = path
    for key in parents:
        if key not in cursor or not isinstance(cursor[key], MutableMapping):
            cursor[key] = {}
        cursor = cursor[key]  # type: ignore[assignment]
    cursor[last] = value


def load_config(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> PipelineConfig:
    """加载配置：优先显式路径，其次环境变量，最后回退默认 baseline。"""

    env_map = env if env is not None else os.environ
    config_path = path or env_map.get(CONFIG_ENV_KEY)
    target_path = Path(config_path).expanduser() if config_path else _default_config_path()
    data = _load_yaml(target_path)
    _apply_env_overrides(data, env_map)
    return PipelineConfig.model_validate({**data, "raw": data})
