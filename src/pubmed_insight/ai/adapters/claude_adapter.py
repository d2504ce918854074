"""
Anthropic Claude Messages API 어댑터 (anthropic SDK, AsyncAnthropic).
"""

from typing import Any, Mapping, Optional, Union

import anthropic
from anthropic import AsyncAnthropic
from loguru import logger

from pubmed_insight.errors import ConfigurationError, PubMedInsightError

from ..base import CONNECTION_TEST_PROMPT, BaseModelAdapter
from ..models import GenerationOptions, GenerationResult, ModelConfig


class ClaudeAdapter(BaseModelAdapter):
    """Anthropic Claude 모델 어댑터."""

    provider_name = 'Claude'
    default_model = 'claude-3-haiku-20240307'
    default_base_url = 'https://api.anthropic.com'
    DEFAULT_TOKEN_LIMIT = 200000
    supported_features = ('text-generation', 'chat', 'analysis')

    PRICING = {
        'claude-3-haiku-20240307': (0.00025, 0.00125),
        'claude-3-sonnet-20240229': (0.003, 0.015),
        'claude-3-opus-20240229': (0.015, 0.075),
        'claude-3-5-sonnet-20241022': (0.003, 0.015),
        'claude-3-5-haiku-20241022': (0.001, 0.005),
    }

    def __init__(self, config: Union[ModelConfig, Mapping[str, Any], None] = None, request_timeout: float = 60.0,
                 name: str = 'claude'):
        super().__init__(name, config, request_timeout)

    def _validate_key_format(self, api_key: str) -> None:
        if not api_key.startswith('sk-ant-'):
            raise ConfigurationError('Claude API 키 형식이 잘못되었습니다 ("sk-ant-"로 시작해야 합니다)')

    def _create_client(self, cfg: ModelConfig, timeout: float) -> AsyncAnthropic:
        return AsyncAnthropic(
            api_key=cfg.api_key,
            base_url=cfg.base_url or self.default_base_url,
            timeout=timeout,
            max_retries=0,
        )

    def _describe_error(self, exc: BaseException) -> str:
        if isinstance(exc, anthropic.APITimeoutError):
            return f"{self.provider_name} 요청 시간이 초과되었습니다"
        if isinstance(exc, anthropic.APIConnectionError):
            return f"{self.provider_name} 네트워크 연결에 실패했습니다"
        return super()._describe_error(exc)

    async def _send_test_request(self, cfg: ModelConfig) -> Optional[str]:
        client = self._create_client(cfg, self.connection_test_timeout)
        try:
            response = await client.messages.create(
                model=cfg.model or self.default_model,
                max_tokens=10,
                temperature=0,
                messages=[{"role": "user", "content": CONNECTION_TEST_PROMPT}],
            )
        finally:
            await client.close()
        if not response.content:
            raise ValueError("Claude 응답 형식이 올바르지 않습니다")
        return response.model

    async def generate_text(
        self,
        prompt: str,
        options: Union[GenerationOptions, Mapping[str, Any], None] = None
    ) -> GenerationResult:
        """Messages API로 텍스트를 생성합니다. 여러 text 블록은 이어 붙입니다."""
        client = self._get_client()
        params = self._resolve_generation_params(options)

        request = {
            'model': self.model_id,
            'max_tokens': params['max_tokens'],
            'temperature': params['temperature'],
            'messages': [{"role": "user", "content": prompt}],
        }
        if params['top_p'] is not None:
            request['top_p'] = params['top_p']
        if params['system_prompt']:
            request['system'] = params['system_prompt']
        request.update(self._config.extras)

        logger.debug(f"Claude 요청 (모델: {self.model_id}, max_tokens: {params['max_tokens']})")
        try:
            response = await client.messages.create(**request)
        except PubMedInsightError:
            raise
        except Exception as e:
            raise self._wrap_error(e) from e

        text = ''.join(block.text for block in response.content or [] if getattr(block, 'type', None) == 'text')
        usage = response.usage
        token_usage = self._build_usage(
            prompt,
            text,
            getattr(usage, 'input_tokens', None),
            getattr(usage, 'output_tokens', None),
        )
        return self._make_result(text, token_usage, response.model, response.stop_reason)
