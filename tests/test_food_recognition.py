"""Tests for the vision providers and their factory."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.messages import AIMessage

from conftest import TINY_PNG_BASE64, chat_recognizer, model_reply
from food_scan_api.core.config import FallbackProvider, Settings
from food_scan_api.services.food_recognition import (
    ChatVisionFoodRecognition,
    FoodRecognitionError,
    OllamaFoodRecognition,
    UnavailableFoodRecognition,
    clear_service_cache,
    get_fallback_recognition_service,
    get_food_recognition_service,
)
from food_scan_api.services.food_recognition.factory import get_vision_llm
from food_scan_api.utils.images import ImagePayload

IMAGE = ImagePayload.from_request(TINY_PNG_BASE64)


class TestChatVisionFoodRecognition:
    """Tests for ChatVisionFoodRecognition."""

    @pytest.mark.asyncio
    async def test_recognize_success(self, sample_items):
        """Test a fenced JSON reply becomes a FoodAnalysis."""
        provider = chat_recognizer(model_reply(*sample_items, description="Chicken and rice"))

        analysis = await provider.recognize(IMAGE, context="dinner")

        assert len(analysis.items) == 2
        assert analysis.description == "Chicken and rice"

    @pytest.mark.asyncio
    async def test_sends_prompt_and_image(self, sample_items):
        """Test the message carries the prompt text and the image data URL."""
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content=model_reply(*sample_items)))
        provider = ChatVisionFoodRecognition(llm=llm, model_name="gpt-4o")

        await provider.recognize(IMAGE, text_hint="chicken rice bowl")

        (messages,), _ = llm.ainvoke.call_args
        text_part, image_part = messages[0].content
        assert "User text hint: chicken rice bowl" in text_part["text"]
        assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")

    @pytest.mark.asyncio
    async def test_provider_exception(self):
        """Test model call errors are wrapped as PROVIDER_ERROR."""
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))
        provider = ChatVisionFoodRecognition(llm=llm, model_name="gpt-4o")

        with pytest.raises(FoodRecognitionError) as exc_info:
            await provider.recognize(IMAGE)

        assert exc_info.value.error_code == "PROVIDER_ERROR"
        assert exc_info.value.provider == "chat/gpt-4o"

    @pytest.mark.asyncio
    async def test_empty_reply(self):
        provider = chat_recognizer("   ")

        with pytest.raises(FoodRecognitionError) as exc_info:
            await provider.recognize(IMAGE)

        assert exc_info.value.error_code == "EMPTY_RESPONSE"

    @pytest.mark.asyncio
    async def test_content_block_reply(self, sample_items):
        """Test list-of-blocks replies are joined before parsing."""
        llm = MagicMock()
        llm.ainvoke = AsyncMock(
            return_value=AIMessage(content=[{"type": "text", "text": model_reply(*sample_items)}])
        )
        provider = ChatVisionFoodRecognition(llm=llm, model_name="gemini")

        analysis = await provider.recognize(IMAGE)

        assert len(analysis.items) == 2


class TestOllamaFoodRecognition:
    """Tests for OllamaFoodRecognition."""

    def make_provider(self, handler) -> OllamaFoodRecognition:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return OllamaFoodRecognition(base_url="http://ollama:11434", model="llava:7b", client=client)

    @pytest.mark.asyncio
    async def test_recognize_success(self, sample_items):
        """Test the raw base64 image is sent and the reply parsed."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["path"] = request.url.path
            return httpx.Response(200, json={"response": json.dumps({"items": sample_items})})

        provider = self.make_provider(handler)

        analysis = await provider.recognize(IMAGE)

        assert seen["path"] == "/api/generate"
        assert seen["body"]["images"] == [IMAGE.base64_data]
        assert seen["body"]["model"] == "llava:7b"
        assert len(analysis.items) == 2

    @pytest.mark.asyncio
    async def test_http_error(self):
        provider = self.make_provider(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(FoodRecognitionError) as exc_info:
            await provider.recognize(IMAGE)

        assert exc_info.value.error_code == "PROVIDER_ERROR"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = self.make_provider(handler)

        with pytest.raises(FoodRecognitionError) as exc_info:
            await provider.recognize(IMAGE)

        assert exc_info.value.error_code == "CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        """Test a proxy error page is reported as a provider error."""
        provider = self.make_provider(
            lambda request: httpx.Response(200, text="<html>proxy error</html>")
        )

        with pytest.raises(FoodRecognitionError) as exc_info:
            await provider.recognize(IMAGE)

        assert exc_info.value.error_code == "PROVIDER_ERROR"

    @pytest.mark.asyncio
    async def test_non_object_json_body(self):
        provider = self.make_provider(lambda request: httpx.Response(200, json=["not", "a", "dict"]))

        with pytest.raises(FoodRecognitionError) as exc_info:
            await provider.recognize(IMAGE)

        assert exc_info.value.error_code == "EMPTY_RESPONSE"

    @pytest.mark.asyncio
    async def test_health_check_finds_model(self):
        """Test the health check looks for the configured model tag."""
        provider = self.make_provider(
            lambda request: httpx.Response(200, json={"models": [{"name": "llava:7b"}]})
        )

        assert await provider.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_missing_model(self):
        provider = self.make_provider(
            lambda request: httpx.Response(200, json={"models": [{"name": "mistral:7b"}]})
        )

        assert await provider.health_check() is False


@pytest.mark.asyncio
async def test_unavailable_provider_always_fails():
    """Test the placeholder fallback raises FALLBACK_UNAVAILABLE."""
    with pytest.raises(FoodRecognitionError) as exc_info:
        await UnavailableFoodRecognition().recognize(IMAGE)

    assert exc_info.value.error_code == "FALLBACK_UNAVAILABLE"


class TestFactory:
    """Tests for provider factory functions."""

    @pytest.fixture(autouse=True)
    def reset_cache(self):
        clear_service_cache()
        yield
        clear_service_cache()

    def test_missing_key_raises(self):
        settings = Settings(_env_file=None, openai_api_key="")

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            get_vision_llm(settings)

    def test_unconfigured_primary_is_unavailable(self):
        """Test an unconfigured provider degrades to the unavailable stub."""
        settings = Settings(_env_file=None, openai_api_key="")

        with patch("food_scan_api.services.food_recognition.factory.get_settings", return_value=settings):
            service = get_food_recognition_service()

        assert isinstance(service, UnavailableFoodRecognition)

    def test_ollama_fallback(self):
        settings = Settings(_env_file=None, vision_fallback_provider=FallbackProvider.OLLAMA)

        with patch("food_scan_api.services.food_recognition.factory.get_settings", return_value=settings):
            service = get_fallback_recognition_service()

        assert isinstance(service, OllamaFoodRecognition)

    def test_default_fallback_is_unavailable(self):
        settings = Settings(_env_file=None)

        with patch("food_scan_api.services.food_recognition.factory.get_settings", return_value=settings):
            service = get_fallback_recognition_service()

        assert isinstance(service, UnavailableFoodRecognition)


def test_fake_chat_model_is_a_chat_model():
    """Test the fake used throughout the suite satisfies the provider's type."""
    provider = ChatVisionFoodRecognition(llm=FakeListChatModel(responses=["{}"]), model_name="fake")

    assert provider.provider_name == "chat/fake"
