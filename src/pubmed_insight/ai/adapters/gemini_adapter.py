"""
Google Gemini 어댑터 (google-genai SDK, client.aio 비동기 인터페이스).
"""

from typing import Any, Mapping, Optional, Union

from google import genai
from google.genai import errors, types
from loguru import logger
from pydantic import ValidationError

from pubmed_insight.errors import ConfigurationError, PubMedInsightError

from ..base import CONNECTION_TEST_PROMPT, BaseModelAdapter
from ..models import GenerationOptions, GenerationResult, ModelConfig

# 오류 메시지에 포함된 표식 → 정규화 메시지
_ERROR_MARKERS = (
    ('API_KEY_INVALID', 'Gemini API 키가 유효하지 않습니다'),
    ('QUOTA_EXCEEDED', 'Gemini API 할당량을 모두 사용했습니다'),
    ('RESOURCE_EXHAUSTED', 'Gemini API 할당량을 모두 사용했습니다'),
    ('MODEL_NOT_FOUND', 'Gemini 모델을 찾을 수 없습니다'),
    ('PERMISSION_DENIED', 'Gemini API 권한이 거부되었습니다'),
)


class GeminiAdapter(BaseModelAdapter):
    """Google Gemini 모델 어댑터."""

    provider_name = 'Gemini'
    default_model = 'gemini-1.5-flash'
    DEFAULT_TOKEN_LIMIT = 1048576
    supported_features = ('text-generation', 'chat', 'multimodal')
    MIN_KEY_LENGTH = 30

    TOKEN_LIMITS = {
        'gemini-1.5-flash': 1048576,
        'gemini-1.5-pro': 2097152,
        'gemini-1.0-pro': 32768,
    }

    PRICING = {
        'gemini-1.5-flash': (0.000075, 0.0003),
        'gemini-1.5-pro': (0.00125, 0.005),
        'gemini-1.0-pro': (0.0005, 0.0015),
    }

    def __init__(self, config: Union[ModelConfig, Mapping[str, Any], None] = None, request_timeout: float = 60.0,
                 name: str = 'gemini'):
        super().__init__(name, config, request_timeout)

    def _validate_key_format(self, api_key: str) -> None:
        if len(api_key) < self.MIN_KEY_LENGTH:
            raise ConfigurationError('Gemini API 키 형식이 잘못되었습니다 (길이가 너무 짧습니다)')

    def _create_client(self, cfg: ModelConfig, timeout: float) -> genai.Client:
        # HttpOptions.timeout 단위는 밀리초
        http_options = types.HttpOptions(timeout=int(timeout * 1000))
        if cfg.base_url:
            http_options.base_url = cfg.base_url
        return genai.Client(api_key=cfg.api_key, http_options=http_options)

    @staticmethod
    def _status_code_of(exc: BaseException) -> Optional[int]:
        if isinstance(exc, errors.APIError) and isinstance(exc.code, int):
            return exc.code
        return BaseModelAdapter._status_code_of(exc)

    def _describe_error(self, exc: BaseException) -> str:
        text = f"{getattr(exc, 'status', '') or ''} {exc}"
        for marker, message in _ERROR_MARKERS:
            if marker in text:
                return message
        return super()._describe_error(exc)

    async def _send_test_request(self, cfg: ModelConfig) -> Optional[str]:
        client = self._create_client(cfg, self.connection_test_timeout)
        try:
            response = await client.aio.models.generate_content(
                model=cfg.model or self.default_model,
                contents=CONNECTION_TEST_PROMPT,
                config=types.GenerateContentConfig(max_output_tokens=10, temperature=0),
            )
        finally:
            await client.aio.aclose()
        if not response.candidates:
            raise ValueError("Gemini 응답 형식이 올바르지 않습니다")
        return getattr(response, 'model_version', None)

    def _build_generation_config(self, params: Mapping[str, Any]) -> types.GenerateContentConfig:
        """생성 설정을 만듭니다. Gemini가 받지 않는 extras 필드는 ConfigurationError가 됩니다."""
        try:
            return types.GenerateContentConfig(
                temperature=params['temperature'],
                top_p=1 if params['top_p'] is None else params['top_p'],
                max_output_tokens=params['max_tokens'],
                response_mime_type='text/plain',
                system_instruction=params['system_prompt'] or None,
                **self._config.extras,
            )
        except (ValidationError, TypeError) as e:
            fields_text = ', '.join(sorted(self._config.extras)) or '없음'
            raise ConfigurationError(f"Gemini 생성 설정이 올바르지 않습니다 (extras: {fields_text})") from e

    async def generate_text(
        self,
        prompt: str,
        options: Union[GenerationOptions, Mapping[str, Any], None] = None
    ) -> GenerationResult:
        """generate_content로 텍스트를 생성합니다. 사용량이 없으면 추정치를 사용합니다."""
        client = self._get_client()
        params = self._resolve_generation_params(options)

        logger.debug(f"Gemini 요청 (모델: {self.model_id}, max_tokens: {params['max_tokens']})")
        try:
            generation_config = self._build_generation_config(params)
            response = await client.aio.models.generate_content(
                model=self.model_id,
                contents=prompt,
                config=generation_config,
            )
            text = response.text or ''
        except PubMedInsightError:
            raise
        except Exception as e:
            raise self._wrap_error(e) from e

        metadata = getattr(response, 'usage_metadata', None)
        token_usage = self._build_usage(
            prompt,
            text,
            getattr(metadata, 'prompt_token_count', None),
            getattr(metadata, 'candidates_token_count', None),
        )

        finish_reason = None
        if response.candidates:
            reason = response.candidates[0].finish_reason
            finish_reason = getattr(reason, 'name', None) or (str(reason) if reason else None)
        return self._make_result(text, token_usage, self.model_id, finish_reason)
