"""
프로바이더 어댑터 테스트.

벤더 SDK 클라이언트와 HTTP 호출은 모두 mock으로 대체합니다.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest
from google.genai import types

from pubmed_insight.ai.adapters import ClaudeAdapter, DeepSeekAdapter, GeminiAdapter, OpenAIAdapter
from pubmed_insight.ai.adapters.deepseek_adapter import MOCK_RESPONSE_TEXT
from pubmed_insight.errors import ConfigurationError, ProviderError

GEMINI_KEY = "AIza" + "x" * 35


def _openai_response(content="OpenAI answer", prompt_tokens=10, completion_tokens=5):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content), finish_reason="stop")]
    response.usage = MagicMock(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    response.model = "gpt-3.5-turbo-0125"
    return response


@pytest.fixture
def mock_openai_client():
    with patch('pubmed_insight.ai.adapters.openai_adapter.AsyncOpenAI') as mock_cls:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_openai_response())
        client.close = AsyncMock()
        mock_cls.return_value = client
        yield mock_cls, client


class TestOpenAIAdapter:

    @pytest.mark.asyncio
    async def test_generate_text(self, mock_openai_client):
        mock_cls, client = mock_openai_client
        adapter = OpenAIAdapter({"api_key": "sk-test123"})

        result = await adapter.generate_text("Summarize", {"system_prompt": "You are concise", "max_tokens": 100})

        assert result.text == "OpenAI answer"
        assert result.usage.total_tokens == 15
        assert result.cost == pytest.approx(10 / 1000 * 0.0015 + 5 / 1000 * 0.002)
        assert result.model == "gpt-3.5-turbo-0125"
        assert result.finish_reason == "stop"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "You are concise"}
        assert kwargs["max_tokens"] == 100
        assert kwargs["top_p"] == 1
        assert mock_cls.call_args.kwargs["max_retries"] == 0

    @pytest.mark.asyncio
    async def test_extras_are_passed_through(self, mock_openai_client):
        _, client = mock_openai_client
        adapter = OpenAIAdapter({"api_key": "sk-test123", "extras": {"seed": 7}})

        await adapter.generate_text("hi")
        assert client.chat.completions.create.call_args.kwargs["seed"] == 7

    @pytest.mark.asyncio
    async def test_client_recreated_after_key_change(self, mock_openai_client):
        mock_cls, _ = mock_openai_client
        adapter = OpenAIAdapter({"api_key": "sk-first"})

        await adapter.generate_text("one")
        await adapter.generate_text("two")
        assert mock_cls.call_count == 1

        adapter.update_config({"api_key": "sk-second"})
        await adapter.generate_text("three")
        assert mock_cls.call_count == 2
        assert mock_cls.call_args.kwargs["api_key"] == "sk-second"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_cls,status_code,fragment", [
        (openai.AuthenticationError, 401, "API 키가 유효하지 않거나 만료"),
        (openai.RateLimitError, 429, "요청 한도"),
    ])
    async def test_status_errors_are_normalized(self, mock_openai_client, error_cls, status_code, fragment):
        _, client = mock_openai_client
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client.chat.completions.create.side_effect = error_cls(
            "rejected", response=httpx.Response(status_code, request=request), body=None
        )
        adapter = OpenAIAdapter({"api_key": "sk-test123"})

        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate_text("hi")
        assert exc_info.value.status_code == status_code
        assert fragment in exc_info.value.message

    @pytest.mark.asyncio
    async def test_empty_content_raises(self, mock_openai_client):
        _, client = mock_openai_client
        client.chat.completions.create.return_value = _openai_response(content="")
        with pytest.raises(ProviderError):
            await OpenAIAdapter({"api_key": "sk-test123"}).generate_text("hi")

    @pytest.mark.asyncio
    async def test_invalid_key_format(self, mock_openai_client):
        mock_cls, _ = mock_openai_client
        adapter = OpenAIAdapter({"api_key": "not-a-key"})

        with pytest.raises(ConfigurationError):
            await adapter.generate_text("hi")
        result = await adapter.test_connection()
        assert result.success is False
        mock_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_connection_success(self, mock_openai_client):
        _, client = mock_openai_client
        result = await OpenAIAdapter({"api_key": "sk-test123"}).test_connection()

        assert result.success is True
        assert result.model_info.version == "gpt-3.5-turbo-0125"
        assert client.chat.completions.create.call_args.kwargs["max_tokens"] == 10
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connection_failure_closes_client(self, mock_openai_client):
        _, client = mock_openai_client
        client.chat.completions.create.side_effect = RuntimeError("refused")
        result = await OpenAIAdapter({"api_key": "sk-test123"}).test_connection()

        assert result.success is False
        client.close.assert_awaited_once()


class TestClaudeAdapter:

    @pytest.fixture
    def mock_client(self):
        with patch('pubmed_insight.ai.adapters.claude_adapter.AsyncAnthropic') as mock_cls:
            client = MagicMock()
            response = MagicMock()
            response.content = [MagicMock(type="text", text="Hello "), MagicMock(type="text", text="world")]
            response.usage = MagicMock(input_tokens=12, output_tokens=4)
            response.model = "claude-3-haiku-20240307"
            response.stop_reason = "end_turn"
            client.messages.create = AsyncMock(return_value=response)
            client.close = AsyncMock()
            mock_cls.return_value = client
            yield client

    @pytest.mark.asyncio
    async def test_generate_text_joins_blocks(self, mock_client):
        adapter = ClaudeAdapter({"api_key": "sk-ant-test"})
        result = await adapter.generate_text("hi")

        assert result.text == "Hello world"
        assert result.usage.prompt_tokens == 12
        assert result.usage.completion_tokens == 4
        assert result.finish_reason == "end_turn"
        assert result.cost == pytest.approx(12 / 1000 * 0.00025 + 4 / 1000 * 0.00125)

    @pytest.mark.asyncio
    async def test_optional_parameters_only_when_set(self, mock_client):
        adapter = ClaudeAdapter({"api_key": "sk-ant-test"})
        await adapter.generate_text("hi")
        kwargs = mock_client.messages.create.call_args.kwargs
        assert "top_p" not in kwargs
        assert "system" not in kwargs

        await adapter.generate_text("hi", {"top_p": 0.5, "system_prompt": "sys"})
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["top_p"] == 0.5
        assert kwargs["system"] == "sys"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_cls,status_code,fragment", [
        (anthropic.AuthenticationError, 401, "API 키가 유효하지 않거나 만료"),
        (anthropic.RateLimitError, 429, "요청 한도"),
    ])
    async def test_status_errors_are_normalized(self, mock_client, error_cls, status_code, fragment):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        mock_client.messages.create.side_effect = error_cls(
            "rejected", response=httpx.Response(status_code, request=request), body=None
        )

        with pytest.raises(ProviderError) as exc_info:
            await ClaudeAdapter({"api_key": "sk-ant-test"}).generate_text("hi")
        assert exc_info.value.status_code == status_code
        assert fragment in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_closes_client(self, mock_client):
        result = await ClaudeAdapter({"api_key": "sk-ant-test"}).test_connection()

        assert result.success is True
        assert result.model_info.version == "claude-3-haiku-20240307"
        mock_client.close.assert_awaited_once()

    def test_key_format(self):
        adapter = ClaudeAdapter()
        with pytest.raises(ConfigurationError):
            adapter.validate_config(adapter.get_config().merged({"api_key": "sk-openai-style"}))

    def test_model_info(self):
        info = ClaudeAdapter({"model": "claude-3-opus-20240229"}).get_model_info()
        assert info.max_tokens == 200000
        assert info.cost_per_1k_tokens == 0.015


class TestGeminiAdapter:

    @pytest.fixture
    def mock_client(self):
        with patch('pubmed_insight.ai.adapters.gemini_adapter.genai.Client') as mock_cls:
            client = MagicMock()
            response = MagicMock()
            response.text = "Gemini answer"
            response.usage_metadata = MagicMock(prompt_token_count=20, candidates_token_count=8)
            response.candidates = [MagicMock(finish_reason=types.FinishReason.STOP)]
            client.aio.models.generate_content = AsyncMock(return_value=response)
            client.aio.aclose = AsyncMock()
            mock_cls.return_value = client
            yield mock_cls, client, response

    @pytest.mark.asyncio
    async def test_generate_text(self, mock_client):
        mock_cls, client, _ = mock_client
        adapter = GeminiAdapter({"api_key": GEMINI_KEY})

        result = await adapter.generate_text("hi", {"max_tokens": 256, "system_prompt": "sys"})

        assert result.text == "Gemini answer"
        assert result.usage.total_tokens == 28
        assert result.finish_reason == "STOP"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        assert kwargs["config"].max_output_tokens == 256
        assert mock_cls.call_args.kwargs["api_key"] == GEMINI_KEY

    @pytest.mark.asyncio
    async def test_usage_estimated_without_metadata(self, mock_client):
        _, _, response = mock_client
        response.usage_metadata = None
        result = await GeminiAdapter({"api_key": GEMINI_KEY}).generate_text("abcdefgh")

        assert result.usage.prompt_tokens == 2
        assert result.usage.completion_tokens == GeminiAdapter.estimate_tokens("Gemini answer")

    @pytest.mark.asyncio
    async def test_error_markers(self, mock_client):
        _, client, _ = mock_client
        client.aio.models.generate_content.side_effect = RuntimeError("400 API_KEY_INVALID: key rejected")

        with pytest.raises(ProviderError) as exc_info:
            await GeminiAdapter({"api_key": GEMINI_KEY}).generate_text("hi")
        assert "Gemini API 키가 유효하지 않습니다" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unsupported_extras_raise_configuration_error(self, mock_client):
        _, client, _ = mock_client
        adapter = GeminiAdapter({"api_key": GEMINI_KEY, "extras": {"enabled": True}})

        with pytest.raises(ConfigurationError) as exc_info:
            await adapter.generate_text("hello")
        assert "enabled" in exc_info.value.message
        client.aio.models.generate_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_supported_extras_reach_config(self, mock_client):
        _, client, _ = mock_client
        await GeminiAdapter({"api_key": GEMINI_KEY, "extras": {"seed": 7}}).generate_text("hello")
        assert client.aio.models.generate_content.call_args.kwargs["config"].seed == 7

    @pytest.mark.asyncio
    async def test_connection_closes_client(self, mock_client):
        _, client, _ = mock_client
        result = await GeminiAdapter({"api_key": GEMINI_KEY}).test_connection()

        assert result.success is True
        client.aio.aclose.assert_awaited_once()

    def test_short_key_rejected(self):
        adapter = GeminiAdapter()
        with pytest.raises(ConfigurationError):
            adapter.validate_config(adapter.get_config().merged({"api_key": "short"}))


class TestDeepSeekAdapter:

    @staticmethod
    def _payload(content="DeepSeek answer"):
        return {
            "model": "deepseek-chat",
            "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 30, "completion_tokens": 10, "total_tokens": 40},
        }

    @staticmethod
    def _status_error(status_code, body=None):
        request = httpx.Request("POST", "https://api.deepseek.com/v1/chat/completions")
        response = httpx.Response(status_code, request=request, json=body or {})
        return httpx.HTTPStatusError("error", request=request, response=response)

    @pytest.mark.asyncio
    async def test_generate_text(self):
        adapter = DeepSeekAdapter({"api_key": "sk-real", "base_url": "https://proxy.example.com/"})
        with patch.object(adapter, '_post', new_callable=AsyncMock, return_value=self._payload()) as post:
            result = await adapter.generate_text("hi", {"temperature": 0.2})

        assert result.text == "DeepSeek answer"
        assert result.usage.total_tokens == 40
        assert result.cost == pytest.approx(30 / 1000 * 0.0014 + 10 / 1000 * 0.0028)
        cfg, payload, timeout = post.call_args.args
        assert adapter._endpoint(cfg) == "https://proxy.example.com/v1/chat/completions"
        assert payload["temperature"] == 0.2
        assert payload["stream"] is False
        assert timeout == 60.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,fragment", [
        (401, "유효하지 않거나 만료"),
        (403, "접근이 거부"),
        (429, "요청 빈도"),
        (502, "서버 오류"),
    ])
    async def test_http_errors(self, status_code, fragment):
        adapter = DeepSeekAdapter({"api_key": "sk-real"})
        with patch.object(adapter, '_post', new_callable=AsyncMock, side_effect=self._status_error(status_code)):
            with pytest.raises(ProviderError) as exc_info:
                await adapter.generate_text("hi")

        assert fragment in exc_info.value.message
        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_other_status_includes_detail(self):
        adapter = DeepSeekAdapter({"api_key": "sk-real"})
        error = self._status_error(400, {"error": {"message": "bad request body"}})
        with patch.object(adapter, '_post', new_callable=AsyncMock, side_effect=error):
            with pytest.raises(ProviderError) as exc_info:
                await adapter.generate_text("hi")
        assert "bad request body" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error(self):
        adapter = DeepSeekAdapter({"api_key": "sk-real"})
        error = httpx.ConnectError("refused", request=httpx.Request("POST", "https://api.deepseek.com"))
        with patch.object(adapter, '_post', new_callable=AsyncMock, side_effect=error):
            with pytest.raises(ProviderError) as exc_info:
                await adapter.generate_text("hi")
        assert "연결할 수 없습니다" in exc_info.value.message
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        adapter = DeepSeekAdapter({"api_key": "sk-real"})
        with patch.object(adapter, '_post', new_callable=AsyncMock, return_value={"choices": []}):
            with pytest.raises(ProviderError):
                await adapter.generate_text("hi")

    @pytest.mark.asyncio
    async def test_development_mock_mode(self):
        adapter = DeepSeekAdapter({"api_key": "sk-test-key-for-development"}, development_mode=True)
        with patch.object(adapter, '_post', new_callable=AsyncMock) as post:
            result = await adapter.generate_text("hi")
            connection = await adapter.test_connection()

        post.assert_not_called()
        assert result.text == MOCK_RESPONSE_TEXT
        assert result.metadata["mock"] is True
        assert connection.success is True
        assert connection.model_info.version == "deepseek-chat (mock)"

    @pytest.mark.asyncio
    async def test_mock_batch_analyze_parses_sections(self):
        adapter = DeepSeekAdapter({"api_key": "sk-test-key-for-development"}, development_mode=True)
        result = await adapter.batch_analyze([{"id": "1", "title": "Tumor immunology review"}])

        assert result.summary.startswith("所提供的文献")
        assert len(result.key_findings) == 3
        assert len(result.research_suggestions) == 3
        assert result.analyses[0].tags == ["review"]

    @pytest.mark.asyncio
    async def test_test_key_rejected_outside_development(self):
        adapter = DeepSeekAdapter({"api_key": "sk-test-key-for-development"})

        with pytest.raises(ConfigurationError):
            await adapter.generate_text("hi")
        result = await adapter.test_connection()
        assert result.success is False
        assert "실제 DeepSeek API 키" in result.error

    @pytest.mark.asyncio
    async def test_post_uses_httpx(self):
        """_post가 올바른 URL/헤더로 요청하고 JSON을 반환하는지 테스트"""
        adapter = DeepSeekAdapter({"api_key": "sk-real"})
        payload = self._payload()

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://api.deepseek.com/v1/chat/completions"
            assert request.headers["Authorization"] == "Bearer sk-real"
            return httpx.Response(200, json=payload)

        real_client = httpx.AsyncClient
        transport = httpx.MockTransport(handler)
        with patch('pubmed_insight.ai.adapters.deepseek_adapter.httpx.AsyncClient',
                   side_effect=lambda **kwargs: real_client(transport=transport, **kwargs)):
            data = await adapter._post(adapter.get_config(), {"model": "deepseek-chat"}, 5.0)

        assert data == payload
