"""
OpenAI Chat Completions 어댑터 (openai SDK, AsyncOpenAI).
"""

from typing import Any, Mapping, Optional, Union

import openai
from loguru import logger
from openai import AsyncOpenAI

from pubmed_insight.errors import ConfigurationError, PubMedInsightError

from ..base import CONNECTION_TEST_PROMPT, BaseModelAdapter
from ..models import GenerationOptions, GenerationResult, ModelConfig


class OpenAIAdapter(BaseModelAdapter):
    """OpenAI GPT 모델 어댑터."""

    provider_name = 'OpenAI'
    default_model = 'gpt-3.5-turbo'
    default_base_url = 'https://api.openai.com/v1'
    supported_features = ('text-generation', 'chat', 'function-calling')

    TOKEN_LIMITS = {
        'gpt-3.5-turbo': 4096,
        'gpt-3.5-turbo-16k': 16384,
        'gpt-4': 8192,
        'gpt-4-32k': 32768,
        'gpt-4-turbo': 128000,
        'gpt-4o': 128000,
        'gpt-4o-mini': 128000,
    }

    # 1K 토큰당 (prompt, completion) 단가, USD
    PRICING = {
        'gpt-3.5-turbo': (0.0015, 0.002),
        'gpt-3.5-turbo-16k': (0.003, 0.004),
        'gpt-4': (0.03, 0.06),
        'gpt-4-32k': (0.06, 0.12),
        'gpt-4-turbo': (0.01, 0.03),
        'gpt-4o': (0.005, 0.015),
        'gpt-4o-mini': (0.00015, 0.0006),
    }

    def __init__(self, config: Union[ModelConfig, Mapping[str, Any], None] = None, request_timeout: float = 60.0,
                 name: str = 'openai'):
        super().__init__(name, config, request_timeout)

    def _validate_key_format(self, api_key: str) -> None:
        if not api_key.startswith('sk-'):
            raise ConfigurationError('OpenAI API 키 형식이 잘못되었습니다 ("sk-"로 시작해야 합니다)')

    def _create_client(self, cfg: ModelConfig, timeout: float) -> AsyncOpenAI:
        # 재시도는 AIServiceManager가 담당
        return AsyncOpenAI(
            api_key=cfg.api_key,
            base_url=cfg.base_url or self.default_base_url,
            timeout=timeout,
            max_retries=0,
        )

    def _describe_error(self, exc: BaseException) -> str:
        if isinstance(exc, openai.APITimeoutError):
            return f"{self.provider_name} 요청 시간이 초과되었습니다"
        if isinstance(exc, openai.APIConnectionError):
            return f"{self.provider_name} 네트워크 연결에 실패했습니다"
        return super()._describe_error(exc)

    async def _send_test_request(self, cfg: ModelConfig) -> Optional[str]:
        client = self._create_client(cfg, self.connection_test_timeout)
        try:
            response = await client.chat.completions.create(
                model=cfg.model or self.default_model,
                messages=[{"role": "user", "content": CONNECTION_TEST_PROMPT}],
                max_tokens=10,
                temperature=0,
            )
        finally:
            await client.close()
        if not response.choices:
            raise ValueError("OpenAI 응답 형식이 올바르지 않습니다")
        return response.model

    async def generate_text(
        self,
        prompt: str,
        options: Union[GenerationOptions, Mapping[str, Any], None] = None
    ) -> GenerationResult:
        """Chat Completions API로 텍스트를 생성합니다."""
        client = self._get_client()
        params = self._resolve_generation_params(options)

        messages = []
        if params['system_prompt']:
            messages.append({"role": "system", "content": params['system_prompt']})
        messages.append({"role": "user", "content": prompt})

        request = {
            'model': self.model_id,
            'messages': messages,
            'max_tokens': params['max_tokens'],
            'temperature': params['temperature'],
            'top_p': 1 if params['top_p'] is None else params['top_p'],
            'frequency_penalty': params['frequency_penalty'] or 0,
            'presence_penalty': params['presence_penalty'] or 0,
        }
        request.update(self._config.extras)

        logger.debug(f"OpenAI 요청 (모델: {self.model_id}, max_tokens: {params['max_tokens']})")
        try:
            response = await client.chat.completions.create(**request)
        except PubMedInsightError:
            raise
        except Exception as e:
            raise self._wrap_error(e) from e

        if not response.choices or response.choices[0].message is None:
            raise self._wrap_error(ValueError("응답 형식이 올바르지 않습니다"))

        choice = response.choices[0]
        text = choice.message.content or ''
        usage = response.usage
        token_usage = self._build_usage(
            prompt,
            text,
            getattr(usage, 'prompt_tokens', None),
            getattr(usage, 'completion_tokens', None),
        )
        return self._make_result(text, token_usage, response.model, choice.finish_reason)
