"""Shared runtime state for the server."""

from __future__ import annotations

import threading

from prodshot.core import PipelineConfig, load_config
from prodshot.model import GeminiClient
from prodshot.pipeline import ProductShotPipeline

_pipeline_lock = threading.Lock()
_config: PipelineConfig | None = None
_pipeline: ProductShotPipeline | None = None


def get_config() -> PipelineConfig:
    global _config
    with _pipeline_lock:
        if _config is None:
            _config = load_config()
        return _config


def get_pipeline() -> ProductShotPipeline:
    """Build the pipeline once; raises ConfigurationError while the API key is missing."""

    global _pipeline
    config = get_config()
    with _pipeline_lock:
        if _pipeline is None:
            client = GeminiClient.from_config(config.gemini)
            _pipeline = ProductShotPipeline(client, config)
        return _pipeline


def reset_state() -> None:
    global _config, _pipeline
    with _pipeline_lock:
        _config = None
        _pipeline = None
