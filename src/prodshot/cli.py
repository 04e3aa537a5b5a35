"""Prodshot Typer CLI，便于在命令行触发采样与完整流水线。"""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import List, Optional

import typer

from prodshot.core import (
    Frame,
    InlineImage,
    InputError,
    PipelineConfig,
    ProcessedData,
    ProdshotError,
    frames_from_images,
    load_config,
    setup_logging,
)
from prodshot.core.config import _load_local_env
from prodshot.model import GeminiClient
from prodshot.pipeline import ProductShotPipeline
from prodshot.sampling import sample_video

_load_local_env()
app = typer.Typer(help="Prodshot 开发 CLI")


@app.callback()
def main() -> None:
    """Prodshot 顶层 CLI，占位以展示子命令列表。"""

    return None


def _resolve_config(config_path: Optional[Path]) -> PipelineConfig:
    return load_config(config_path) if config_path else load_config()


def _build_pipeline(cfg: PipelineConfig) -> ProductShotPipeline:
    return ProductShotPipeline(GeminiClient.from_config(cfg.gemini), cfg)


def _write_views(result: ProcessedData, save_dir: Path) -> None:
    save_dir.mkdir(parents=True, exist_ok=True)
    for idx, view in enumerate(result.generated_views):
        (save_dir / f"view_{idx:02d}_original.jpg").write_bytes(view.original_frame)
        (save_dir / f"view_{idx:02d}_segmented.png").write_bytes(view.segmented_image)
        (save_dir / f"view_{idx:02d}_enhanced.png").write_bytes(view.enhanced_image)


def _run(cfg: PipelineConfig, frames: List[Frame], output: Path, save_dir: Optional[Path]) -> None:
    def progress(stage: str, fraction: float) -> None:
        typer.echo(f"[{stage}] {fraction:.0%}")

    try:
        pipeline = _build_pipeline(cfg)
        result = pipeline.run_sync(frames, progress_callback=progress)
    except ProdshotError as exc:
        typer.echo(f"处理失败：{exc}", err=True)
        raise typer.Exit(code=2 if isinstance(exc, InputError) else 1) from exc

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(result.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    if save_dir is not None:
        _write_views(result, save_dir)
    typer.echo(f"识别产品：{result.identified_product}，生成 {len(result.generated_views)} 组视图，输出到 {output}")


@app.command("sample-frames")
def sample_frames_cmd(
    video: Path = typer.Argument(..., exists=True, resolve_path=True, help="待采样视频路径"),
    output_dir: Path = typer.Option(Path("output/frames"), "--output-dir", "-o", help="帧图片输出目录"),
    count: Optional[int] = typer.Option(None, "--count", "-n", help="候选帧数量，默认取配置"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="自定义配置文件"),
    log_level: str = typer.Option("INFO", "--log-level", help="日志级别"),
) -> None:
    """按等间距时间点抽取候选帧并写出 JPEG。"""

    setup_logging(log_level)
    cfg = _resolve_config(config_path)
    try:
        frames = sample_video(
            video,
            count if count is not None else cfg.sampler.frame_count,
            jpeg_quality=cfg.sampler.jpeg_quality,
            min_duration=cfg.sampler.min_duration_seconds,
        )
    except InputError as exc:
        typer.echo(f"无法采样视频：{exc}", err=True)
        raise typer.Exit(code=2) from exc

    output_dir.mkdir(parents=True, exist_ok=True)
    for frame in frames:
        (output_dir / f"frame_{frame.index:02d}.jpg").write_bytes(frame.image_bytes)
    typer.echo(f"采样 {len(frames)} 帧，输出到 {output_dir}")


@app.command("process")
def process_cmd(
    video: Path = typer.Argument(..., exists=True, resolve_path=True, help="商品视频路径"),
    output: Path = typer.Option(Path("output/result.json"), "--output", "-o", help="结果 JSON 输出路径"),
    save_dir: Optional[Path] = typer.Option(None, "--save-dir", help="可选：逐张写出原图/抠图/增强图"),
    count: Optional[int] = typer.Option(None, "--count", "-n", help="候选帧数量，默认取配置"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="自定义配置文件"),
    log_level: str = typer.Option("INFO", "--log-level", help="日志级别"),
) -> None:
    """采样视频并执行选帧 -> 抠图 -> 增强完整流水线。"""

    setup_logging(log_level)
    cfg = _resolve_config(config_path)
    try:
        frames = sample_video(
            video,
            count if count is not None else cfg.sampler.frame_count,
            jpeg_quality=cfg.sampler.jpeg_quality,
            min_duration=cfg.sampler.min_duration_seconds,
        )
    except InputError as exc:
        typer.echo(f"无法采样视频：{exc}", err=True)
        raise typer.Exit(code=2) from exc
    _run(cfg, frames, output, save_dir)


@app.command("process-frames")
def process_frames_cmd(
    images: List[Path] = typer.Argument(..., exists=True, resolve_path=True, help="已抽取的候选帧图片，按顺序编号"),
    output: Path = typer.Option(Path("output/result.json"), "--output", "-o", help="结果 JSON 输出路径"),
    save_dir: Optional[Path] = typer.Option(None, "--save-dir", help="可选：逐张写出原图/抠图/增强图"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="自定义配置文件"),
    log_level: str = typer.Option("INFO", "--log-level", help="日志级别"),
) -> None:
    """对现成的帧图片执行流水线，跳过采样。"""

    setup_logging(log_level)
    cfg = _resolve_config(config_path)
    images_in = [
        InlineImage(data=path.read_bytes(), mime_type=mimetypes.guess_type(path.name)[0] or "image/jpeg")
        for path in images
    ]
    _run(cfg, frames_from_images(images_in), output, save_dir)


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", "--host", help="监听地址"),
    port: int = typer.Option(8000, "--port", help="监听端口"),
    log_level: str = typer.Option("INFO", "--log-level", help="日志级别"),
) -> None:
    """启动 HTTP 服务。"""

    import uvicorn

    setup_logging(log_level)
    uvicorn.run("prodshot.server.app:app", host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":  # pragma: no cover
    app()
