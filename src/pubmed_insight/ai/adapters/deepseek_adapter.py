"""
DeepSeek 어댑터.

OpenAI 호환 `/v1/chat/completions` 엔드포인트를 httpx로 직접 호출합니다.
개발 모드에서는 `sk-test-` 키로 네트워크 없이 모의 응답을 반환합니다.
"""

from typing import Any, Dict, Mapping, Optional, Union

import httpx
from loguru import logger

from pubmed_insight.errors import ConfigurationError, ProviderError

from ..base import CONNECTION_TEST_PROMPT, BaseModelAdapter
from ..models import GenerationOptions, GenerationResult, ModelConfig

TEST_KEY_PREFIX = 'sk-test-'

MOCK_RESPONSE_TEXT = (
    "## 总体概述\n"
    "所提供的文献显示该领域正从单一维度分析转向多组学整合分析，人工智能方法的应用日益广泛。\n\n"
    "## 关键发现\n"
    "1. 精准医学和个体化治疗成为核心研究方向\n"
    "2. 机器学习提高了生物标志物发现的效率\n"
    "3. 跨学科合作催生新的研究范式\n\n"
    "## 研究建议\n"
    "1. 加强基础研究向临床应用的转化\n"
    "2. 关注疾病早期诊断与预后评估\n"
    "3. 推进单细胞测序等新技术的应用\n\n"
    "## 详细分析\n"
    "这是开发模式下的模拟响应，实际使用时请配置有效的DeepSeek API密钥。\n"
)


class DeepSeekAdapter(BaseModelAdapter):
    """DeepSeek 모델 어댑터 (httpx 기반)."""

    provider_name = 'DeepSeek'
    default_model = 'deepseek-chat'
    default_base_url = 'https://api.deepseek.com'
    DEFAULT_TOKEN_LIMIT = 32768
    supported_features = ('text-generation', 'chat', 'chinese-optimized')

    PRICING = {
        'deepseek-chat': (0.0014, 0.0028),
        'deepseek-coder': (0.0014, 0.0028),
    }

    def __init__(self, config: Union[ModelConfig, Mapping[str, Any], None] = None, request_timeout: float = 60.0,
                 name: str = 'deepseek', development_mode: bool = False):
        self.development_mode = development_mode
        super().__init__(name, config, request_timeout)

    def _is_mock_key(self, api_key: Optional[str]) -> bool:
        return self.development_mode and bool(api_key) and api_key.startswith(TEST_KEY_PREFIX)

    def _validate_key_format(self, api_key: str) -> None:
        if api_key.startswith(TEST_KEY_PREFIX) and not self.development_mode:
            raise ConfigurationError(
                "실제 DeepSeek API 키를 설정하세요. 테스트 키로는 DeepSeek 서비스에 연결할 수 없습니다."
            )

    def _endpoint(self, cfg: ModelConfig) -> str:
        base_url = (cfg.base_url or self.default_base_url).rstrip('/')
        return f"{base_url}/v1/chat/completions"

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _describe_status(self, status_code: int, detail: str = '') -> str:
        if status_code == 401:
            return "DeepSeek API 키가 유효하지 않거나 만료되었습니다. API 키 설정을 확인하세요"
        if status_code == 403:
            return "DeepSeek API 접근이 거부되었습니다. API 키 권한을 확인하세요"
        if status_code == 429:
            return "DeepSeek API 요청 빈도가 너무 높습니다. 잠시 후 다시 시도하세요"
        if status_code >= 500:
            return "DeepSeek 서버 오류입니다. 잠시 후 다시 시도하세요"
        return f"DeepSeek API 오류 ({status_code}): {detail or '알 수 없는 오류'}"

    def _describe_error(self, exc: BaseException) -> str:
        if isinstance(exc, httpx.HTTPStatusError):
            return self._describe_status(exc.response.status_code, self._error_detail(exc.response))
        if isinstance(exc, httpx.RequestError):
            return "DeepSeek API 서버에 연결할 수 없습니다. 네트워크와 API 주소 설정을 확인하세요"
        return super()._describe_error(exc)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            return response.json().get('error', {}).get('message', '')
        except (ValueError, AttributeError):
            return ''

    async def _post(self, cfg: ModelConfig, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(self._endpoint(cfg), headers=self._headers(cfg.api_key), json=payload)
            response.raise_for_status()
            return response.json()

    async def _send_test_request(self, cfg: ModelConfig) -> Optional[str]:
        model = cfg.model or self.default_model
        if self._is_mock_key(cfg.api_key):
            logger.info("DeepSeek 개발 모드: 연결 테스트를 모의 처리합니다")
            return f"{model} (mock)"

        data = await self._post(cfg, {
            "model": model,
            "messages": [{"role": "user", "content": CONNECTION_TEST_PROMPT}],
            "max_tokens": 10,
            "temperature": 0,
            "stream": False,
        }, self.connection_test_timeout)
        if not data.get('choices'):
            raise ValueError("DeepSeek 응답 형식이 올바르지 않습니다")
        return data.get('model')

    async def generate_text(
        self,
        prompt: str,
        options: Union[GenerationOptions, Mapping[str, Any], None] = None
    ) -> GenerationResult:
        """OpenAI 호환 Chat Completions 요청으로 텍스트를 생성합니다."""
        cfg = self._ensure_ready()

        if self._is_mock_key(cfg.api_key):
            logger.info("DeepSeek 개발 모드: 모의 응답을 반환합니다")
            usage = self._build_usage(prompt, MOCK_RESPONSE_TEXT)
            result = self._make_result(MOCK_RESPONSE_TEXT, usage, self.model_id, 'stop')
            result.metadata['mock'] = True
            return result

        params = self._resolve_generation_params(options)
        messages = []
        if params['system_prompt']:
            messages.append({"role": "system", "content": params['system_prompt']})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model_id,
            "messages": messages,
            "temperature": params['temperature'],
            "max_tokens": params['max_tokens'],
            "top_p": 1 if params['top_p'] is None else params['top_p'],
            "frequency_penalty": params['frequency_penalty'] or 0,
            "presence_penalty": params['presence_penalty'] or 0,
            "stream": False,
        }
        payload.update(cfg.extras)

        logger.debug(f"DeepSeek 요청 (모델: {self.model_id}, max_tokens: {params['max_tokens']})")
        try:
            data = await self._post(cfg, payload, self.request_timeout)
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self._describe_error(e), provider=self.name, status_code=e.response.status_code
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(self._describe_error(e), provider=self.name) from e
        except ValueError as e:
            raise ProviderError("DeepSeek 응답을 해석할 수 없습니다", provider=self.name) from e

        choices = data.get('choices') or []
        message = choices[0].get('message') if choices else None
        if not message:
            raise ProviderError("DeepSeek 응답 형식이 올바르지 않습니다", provider=self.name)

        text = message.get('content') or ''
        usage = data.get('usage') or {}
        token_usage = self._build_usage(prompt, text, usage.get('prompt_tokens'), usage.get('completion_tokens'))
        return self._make_result(text, token_usage, data.get('model'), choices[0].get('finish_reason'))
