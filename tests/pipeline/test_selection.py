"""选帧阶段测试：响应解析、默认值与致命错误。"""

import asyncio

import pytest

from prodshot.core import InputError, SelectionError
from prodshot.core.config import SelectionConfig
from prodshot.pipeline import parse_selection, select_frames


def test_well_formed_response_used_verbatim() -> None:
    result = parse_selection('{"product_name": "Blue Sneaker", "best_frame_indices": [2, 7, 15, 21, 29]}', 30, SelectionConfig())

    assert result.product_name == "Blue Sneaker"
    assert result.chosen_indices == [2, 7, 15, 21, 29]


def test_long_index_list_truncated_to_five() -> None:
    result = parse_selection('{"product_name": "Mug", "best_frame_indices": [9, 8, 7, 6, 5, 4, 3]}', 30, SelectionConfig())

    assert result.chosen_indices == [9, 8, 7, 6, 5]


@pytest.mark.parametrize(
    "text",
    [
        '{"product_name": "Mug"}',
        '{"product_name": "Mug", "best_frame_indices": []}',
        '{"product_name": "Mug", "best_frame_indices": "2,3"}',
    ],
)
def test_missing_indices_default_to_first_five(text: str) -> None:
    result = parse_selection(text, 30, SelectionConfig())

    assert result.product_name == "Mug"
    assert result.chosen_indices == [0, 1, 2, 3, 4]


def test_missing_indices_with_few_frames() -> None:
    result = parse_selection("{}", 3, SelectionConfig())

    assert result.chosen_indices == [0, 1, 2]


@pytest.mark.parametrize("text", ['{"best_frame_indices": [1]}', '{"product_name": "  "}', '{"product_name": 42}'])
def test_missing_product_name_uses_placeholder(text: str) -> None:
    result = parse_selection(text, 30, SelectionConfig(default_product_name="Item"))

    assert result.product_name == "Item"


def test_code_fenced_json_is_accepted() -> None:
    result = parse_selection('```json\n{"product_name": "Lamp", "best_frame_indices": [1]}\n```', 30, SelectionConfig())

    assert result.product_name == "Lamp"
    assert result.chosen_indices == [1]


@pytest.mark.parametrize("text", ["", "not json", "[1, 2, 3]", '{"product_name": '])
def test_malformed_response_is_fatal(text: str) -> None:
    with pytest.raises(SelectionError):
        parse_selection(text, 30, SelectionConfig())


def test_single_batched_call_carries_all_frames(fake_model_cls, frames) -> None:
    model = fake_model_cls()

    asyncio.run(select_frames(model, frames, SelectionConfig()))

    assert len(model.json_calls) == 1
    assert model.json_calls[0][2] == 30


def test_transport_failure_is_fatal(fake_model_cls, frames) -> None:
    model = fake_model_cls(selection=ConnectionError("network down"))

    with pytest.raises(SelectionError, match="network down"):
        asyncio.run(select_frames(model, frames, SelectionConfig()))


def test_no_frames_is_input_error(fake_model_cls) -> None:
    model = fake_model_cls()

    with pytest.raises(InputError):
        asyncio.run(select_frames(model, [], SelectionConfig()))

    assert model.json_calls == []
