"""Gemini REST 客户端测试，使用 httpx.MockTransport 拦截请求。"""

import asyncio
import base64
import json

import httpx
import pytest

from prodshot.core import ConfigurationError, InlineImage, ModelResponseError
from prodshot.core.config import GeminiConfig
from prodshot.model import GeminiClient, extract_image, extract_text


def _client(handler) -> GeminiClient:
    transport = httpx.MockTransport(handler)
    return GeminiClient("test-key", http_client=httpx.AsyncClient(transport=transport))


def _image_response(*parts) -> dict:
    return {"candidates": [{"content": {"parts": list(parts)}}]}


def test_generate_json_sends_prompt_then_images() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_image_response({"text": '{"product_name": "Mug"}'}))

    client = _client(handler)
    images = [InlineImage(b"a", "image/jpeg"), InlineImage(b"b", "image/jpeg")]

    text = asyncio.run(client.generate_json("gemini-2.5-flash", "pick frames", images))

    assert text == '{"product_name": "Mug"}'
    assert seen["url"].endswith("/models/gemini-2.5-flash:generateContent")
    assert seen["key"] == "test-key"
    parts = seen["body"]["contents"][0]["parts"]
    assert parts[0] == {"text": "pick frames"}
    assert base64.b64decode(parts[1]["inlineData"]["data"]) == b"a"
    assert seen["body"]["generationConfig"] == {"responseMimeType": "application/json"}


def test_generate_image_returns_first_image_part() -> None:
    payload = base64.b64encode(b"png-bytes").decode()

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][1] == {"text": "cut it out"}
        assert body["generationConfig"] == {"responseModalities": ["IMAGE"]}
        return httpx.Response(
            200,
            json=_image_response({"text": "here you go"}, {"inlineData": {"mimeType": "image/png", "data": payload}}),
        )

    client = _client(handler)

    result = asyncio.run(client.generate_image("gemini-2.5-flash-image", "cut it out", InlineImage(b"x", "image/jpeg")))

    assert result == InlineImage(b"png-bytes", "image/png")


def test_generate_image_without_image_part_returns_none() -> None:
    client = _client(lambda request: httpx.Response(200, json=_image_response({"text": "sorry"})))

    result = asyncio.run(client.generate_image("m", "p", InlineImage(b"x", "image/jpeg")))

    assert result is None


def test_error_status_raises_model_response_error() -> None:
    client = _client(lambda request: httpx.Response(503, text="overloaded"))

    with pytest.raises(ModelResponseError):
        asyncio.run(client.generate_json("m", "p", []))


def test_from_config_requires_api_key() -> None:
    with pytest.raises(ConfigurationError):
        GeminiClient.from_config(GeminiConfig(), env={})

    client = GeminiClient.from_config(GeminiConfig(base_url="http://local/"), env={"GEMINI_API_KEY": "k"})
    assert client.base_url == "http://local"


def test_extract_helpers_tolerate_missing_fields() -> None:
    assert extract_text({}) == ""
    assert extract_image({"candidates": []}) is None
    snake = {"candidates": [{"content": {"parts": [{"inline_data": {"data": base64.b64encode(b"z").decode()}}]}}]}
    assert extract_image(snake) == InlineImage(b"z", "image/png")
