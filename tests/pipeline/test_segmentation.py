"""抠图阶段测试：部分失败容忍与全部失败报错。"""

import asyncio

import pytest

from prodshot.core import SegmentationFailure
from prodshot.core.config import SegmentationConfig
from prodshot.pipeline import SEGMENTATION_FAILURE_MESSAGE, segment_frames


def test_partial_failures_are_dropped_in_order(fake_model_cls, frame_factory) -> None:
    selected = frame_factory(5)
    model = fake_model_cls(fail_segment=[1], empty_segment=[3])

    outcomes = asyncio.run(segment_frames(model, selected, "Mug", SegmentationConfig()))

    assert [outcome.source_index for outcome in outcomes] == [0, 2, 4]
    assert outcomes[1].original_image == b"frame-2"
    assert outcomes[1].segmented_image.data == b"seg:frame-2"
    assert len(model.image_calls) == 5
    assert all("'Mug'" in prompt for _, prompt, _ in model.image_calls)


def test_calls_are_issued_concurrently(fake_model_cls, frame_factory) -> None:
    model = fake_model_cls()

    asyncio.run(segment_frames(model, frame_factory(5), "Mug", SegmentationConfig()))

    starts = [idx for idx, event in enumerate(model.events) if event.startswith("segment-start")]
    first_end = next(idx for idx, event in enumerate(model.events) if event.startswith("segment-end"))
    assert len(starts) == 5
    assert max(starts) < first_end


def test_all_failures_raise(fake_model_cls, frame_factory) -> None:
    model = fake_model_cls(fail_segment=[0, 1], empty_segment=[2])

    with pytest.raises(SegmentationFailure, match=SEGMENTATION_FAILURE_MESSAGE):
        asyncio.run(segment_frames(model, frame_factory(3), "Mug", SegmentationConfig()))
