#!/usr/bin/env python3
"""
End-to-end smoke run against a live prodshot server.

Samples candidate frames from a local video, posts them to /api/process-video
as multipart parts (in frame order) and writes the returned views to disk.
"""

from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request
import uuid
from pathlib import Path

from prodshot.core import ProcessedData
from prodshot.sampling import sample_video

LOG_LINES: list[str] = []


def log(message: str) -> None:
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{timestamp}] {message}"
    print(line)
    LOG_LINES.append(line)


def build_multipart(parts: list[tuple[str, str, bytes, str]]) -> tuple[bytes, str]:
    boundary = f"----ProdshotBoundary{uuid.uuid4().hex}"
    body = bytearray()
    for field_name, filename, data, content_type in parts:
        body.extend(f"--{boundary}\r\n".encode("utf-8"))
        body.extend(
            f'Content-Disposition: form-data; name="{field_name}"; filename="{filename}"\r\n'.encode("utf-8")
        )
        body.extend(f"Content-Type: {content_type}\r\n\r\n".encode("utf-8"))
        body.extend(data)
        body.extend(b"\r\n")
    body.extend(f"--{boundary}--\r\n".encode("utf-8"))
    return bytes(body), boundary


def post_frames(base_url: str, parts: list[tuple[str, str, bytes, str]], timeout: int) -> tuple[int, str]:
    body, boundary = build_multipart(parts)
    req = urllib.request.Request(
        f"{base_url}/api/process-video",
        data=body,
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        method="POST",
    )
    opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))
    try:
        with opener.open(req, timeout=timeout) as resp:
            return resp.status, resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read().decode("utf-8", errors="replace")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("video", type=Path)
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    parser.add_argument("--count", type=int, default=30)
    parser.add_argument("--out", type=Path, default=Path("output/e2e"))
    parser.add_argument("--timeout", type=int, default=600)
    args = parser.parse_args()

    frames = sample_video(args.video, args.count)
    log(f"sampled {len(frames)} frames from {args.video}")
    parts = [(f"frame_{f.index}", f"frame_{f.index}.jpg", f.image_bytes, f.mime_type) for f in frames]

    started = time.monotonic()
    status, body = post_frames(args.base_url.rstrip("/"), parts, args.timeout)
    log(f"POST /api/process-video -> status={status} in {time.monotonic() - started:.1f}s")

    args.out.mkdir(parents=True, exist_ok=True)
    payload = json.loads(body)
    if status != 200:
        log(f"error: {payload.get('error')}")
        (args.out / "report.txt").write_text("\n".join(LOG_LINES), encoding="utf-8")
        return 1

    result = ProcessedData.from_dict(payload)
    log(f"product={result.identified_product!r} views={len(result.generated_views)}")
    for idx, view in enumerate(result.generated_views):
        (args.out / f"view_{idx:02d}_original.jpg").write_bytes(view.original_frame)
        (args.out / f"view_{idx:02d}_segmented.png").write_bytes(view.segmented_image)
        (args.out / f"view_{idx:02d}_enhanced.png").write_bytes(view.enhanced_image)
        if view.enhanced_image == view.segmented_image:
            log(f"view {idx}: enhancement fell back to the cut-out")
    (args.out / "report.txt").write_text("\n".join(LOG_LINES), encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
