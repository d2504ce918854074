"""
AI 모델 어댑터의 공통 인터페이스와 기본 구현.

각 프로바이더 어댑터는 BaseModelAdapter를 상속하여
generate_text, _send_test_request, _create_client를 구현합니다.
설정 병합, 연결 테스트 흐름, 비용 계산, 토큰 추정, 기본 배치 분석은 여기서 제공합니다.
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import httpx
from loguru import logger

from pubmed_insight.errors import ConfigurationError, ProviderError, PubMedInsightError
from pubmed_insight.keywords.tokenizer import is_cjk
from pubmed_insight.logging_setup import mask_api_key

from .analysis import build_analysis_prompt, parse_analysis_result
from .models import (
    AnalysisItem,
    AnalysisOptions,
    AnalysisResult,
    ConnectionResult,
    GenerationOptions,
    GenerationResult,
    ModelConfig,
    ModelInfo,
    TokenUsage,
)

ConfigLike = Union[ModelConfig, Mapping[str, Any], None]
UsageLike = Union[TokenUsage, Mapping[str, Any], int]

CONNECTION_TEST_PROMPT = "Hello, this is a connection test."
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7
BATCH_MAX_TOKENS = 4000

# 프로바이더 가격표가 없을 때의 기본 단가 (1K 토큰당 prompt, completion)
FALLBACK_PRICING = (0.1, 0.2)
# 정수 하나로 사용량을 넘기는 구 인터페이스용 토큰당 단가
LEGACY_FLAT_RATE = 0.0001


class BaseModelAdapter(ABC):
    """AI 프로바이더 어댑터의 기본 추상 클래스.

    Attributes:
        name (str): 매니저에 등록되는 이름 (예: 'openai')
        request_timeout (float): 생성 요청 타임아웃 (초)
    """

    provider_name: str = ''
    default_model: str = ''
    default_base_url: Optional[str] = None
    TOKEN_LIMITS: Dict[str, int] = {}
    DEFAULT_TOKEN_LIMIT: int = 4096
    PRICING: Dict[str, Tuple[float, float]] = {}
    supported_features: Tuple[str, ...] = ('text-generation', 'chat')
    connection_test_timeout: float = 10.0

    def __init__(self, name: str, config: ConfigLike = None, request_timeout: float = 60.0):
        """
        어댑터 초기화.

        Args:
            name: 등록 이름
            config: 초기 ModelConfig 또는 dict
            request_timeout: 생성 요청 타임아웃 (초)
        """
        self.name = name
        self.request_timeout = request_timeout
        self._config = config.copy() if isinstance(config, ModelConfig) else ModelConfig.from_dict(config)
        self._client: Any = None
        logger.info(f"{self.provider_name} 어댑터 초기화 (모델: {self.model_id})")

    # --- 설정 ---
    @property
    def model_id(self) -> str:
        return self._config.model or self.default_model

    def update_config(self, partial: ConfigLike) -> None:
        """설정을 병합합니다. 연결 관련 필드가 바뀌면 벤더 클라이언트를 다시 만듭니다."""
        merged = self._config.merged(partial)
        changed = set(self._config.changed_fields(merged)) & ModelConfig.CONNECTION_FIELDS
        self._config = merged
        if changed:
            self._client = None
            logger.debug(f"{self.name} 연결 설정 변경 ({', '.join(sorted(changed))}), 클라이언트 재생성 예정")

    def get_config(self) -> ModelConfig:
        return self._config.copy()

    def validate_config(self, cfg: ModelConfig) -> None:
        """API 키 존재 여부와 프로바이더별 형식을 검사합니다.

        Raises:
            ConfigurationError: 키가 없거나 형식이 잘못된 경우
        """
        if not cfg.api_key or not cfg.api_key.strip():
            raise ConfigurationError(f"{self.provider_name} API 키가 설정되지 않았습니다")
        self._validate_key_format(cfg.api_key.strip())

    def _validate_key_format(self, api_key: str) -> None:
        """프로바이더별 키 형식 검사 (하위 클래스에서 재정의)."""

    # --- 모델 정보/비용 ---
    def _pricing_for(self, model: str) -> Tuple[float, float]:
        return self.PRICING.get(model) or self.PRICING.get(self.default_model) or FALLBACK_PRICING

    def get_model_info(self, model: Optional[str] = None) -> ModelInfo:
        model = model or self.model_id
        return ModelInfo(
            name=model,
            provider=self.provider_name,
            version='1.0',
            description=f"{self.provider_name} {model} model",
            max_tokens=self.TOKEN_LIMITS.get(model, self.DEFAULT_TOKEN_LIMIT),
            cost_per_1k_tokens=self._pricing_for(model)[0],
            supported_features=list(self.supported_features),
        )

    def calculate_cost(self, usage: UsageLike, model: Optional[str] = None) -> float:
        """
        토큰 사용량으로 예상 비용을 계산합니다.

        Args:
            usage: TokenUsage, {'prompt_tokens', 'completion_tokens'} dict, 또는 총 토큰 수(int)
            model: 가격표 조회용 모델 (기본값: 현재 설정 모델)

        Returns:
            float: 예상 비용 (USD)
        """
        if isinstance(usage, int) and not isinstance(usage, bool):
            return usage * LEGACY_FLAT_RATE
        if isinstance(usage, Mapping):
            prompt_tokens = usage.get('prompt_tokens', usage.get('promptTokens', 0))
            completion_tokens = usage.get('completion_tokens', usage.get('completionTokens', 0))
        else:
            prompt_tokens, completion_tokens = usage.prompt_tokens, usage.completion_tokens
        prompt_price, completion_price = self._pricing_for(model or self.model_id)
        return prompt_tokens / 1000 * prompt_price + completion_tokens / 1000 * completion_price

    @staticmethod
    def estimate_tokens(text: Optional[str]) -> int:
        """사용량이 보고되지 않을 때의 토큰 추정치 (한자 1.5자, 그 외 4자당 1토큰)."""
        if not text:
            return 0
        cjk_count = sum(1 for char in text if is_cjk(char))
        other_count = len(text) - cjk_count
        return math.ceil(cjk_count / 1.5 + other_count / 4)

    # --- 생성 공통 ---
    def _resolve_generation_params(self, options: Union[GenerationOptions, Mapping[str, Any], None]) -> Dict[str, Any]:
        """호출 옵션 > 저장된 설정 > 기본값 순으로 생성 파라미터를 결정합니다."""
        opts = GenerationOptions.from_value(options)
        cfg = self._config

        def pick(name: str, default: Any = None) -> Any:
            value = getattr(opts, name)
            if value is None:
                value = getattr(cfg, name)
            return default if value is None else value

        return {
            'temperature': pick('temperature', DEFAULT_TEMPERATURE),
            'max_tokens': pick('max_tokens', DEFAULT_MAX_TOKENS),
            'top_p': pick('top_p'),
            'frequency_penalty': pick('frequency_penalty'),
            'presence_penalty': pick('presence_penalty'),
            'system_prompt': opts.system_prompt,
        }

    def _build_usage(
        self,
        prompt: str,
        text: str,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None
    ) -> TokenUsage:
        if prompt_tokens is None and completion_tokens is None:
            return TokenUsage.of(self.estimate_tokens(prompt), self.estimate_tokens(text))
        return TokenUsage.of(prompt_tokens or 0, completion_tokens or 0)

    def _make_result(
        self,
        text: Optional[str],
        usage: TokenUsage,
        model: Optional[str],
        finish_reason: Optional[str]
    ) -> GenerationResult:
        if not text or not text.strip():
            raise ProviderError(f"{self.provider_name} 응답이 비어 있습니다", provider=self.name)
        return GenerationResult(
            text=text,
            usage=usage,
            cost=self.calculate_cost(usage),
            model=model or self.model_id,
            finish_reason=finish_reason or 'unknown',
        )

    def _ensure_ready(self) -> ModelConfig:
        """네트워크 호출 전 설정을 검증하고 현재 설정을 반환합니다."""
        self.validate_config(self._config)
        return self._config

    def _get_client(self) -> Any:
        if self._client is None:
            cfg = self._ensure_ready()
            self._client = self._create_client(cfg, self.request_timeout)
            logger.debug(f"{self.provider_name} 클라이언트 생성 (키: {mask_api_key(cfg.api_key)})")
        return self._client

    def _create_client(self, cfg: ModelConfig, timeout: float) -> Any:
        """벤더 SDK 클라이언트를 생성합니다. SDK를 쓰지 않는 어댑터는 재정의하지 않습니다."""
        return None

    # --- 오류 정규화 ---
    def _describe_status(self, status_code: int, detail: str = '') -> str:
        if status_code == 401:
            return f"{self.provider_name} API 키가 유효하지 않거나 만료되었습니다"
        if status_code == 403:
            return f"{self.provider_name} 접근이 거부되었습니다 (권한 부족)"
        if status_code == 404:
            return f"{self.provider_name} 모델을 찾을 수 없습니다"
        if status_code == 429:
            return f"{self.provider_name} 요청 한도(rate limit/할당량)를 초과했습니다"
        if status_code >= 500:
            return f"{self.provider_name} 서버 오류입니다 (HTTP {status_code})"
        suffix = f": {detail}" if detail else ''
        return f"{self.provider_name} 요청 실패 (HTTP {status_code}){suffix}"

    def _describe_error(self, exc: BaseException) -> str:
        """예외를 사용자에게 보여줄 수 있는 메시지로 변환합니다."""
        if isinstance(exc, PubMedInsightError):
            return exc.message
        status_code = self._status_code_of(exc)
        if status_code is not None:
            return self._describe_status(status_code, str(exc))
        if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
            return f"{self.provider_name} 요청 시간이 초과되었습니다"
        if isinstance(exc, httpx.RequestError):
            return f"{self.provider_name} 네트워크 연결에 실패했습니다"
        return f"{self.provider_name} 연결 실패: {exc}"

    @staticmethod
    def _status_code_of(exc: BaseException) -> Optional[int]:
        status_code = getattr(exc, 'status_code', None)
        if status_code is None:
            response = getattr(exc, 'response', None)
            status_code = getattr(response, 'status_code', None)
        return status_code if isinstance(status_code, int) else None

    def _wrap_error(self, exc: BaseException, action: str = "텍스트 생성") -> PubMedInsightError:
        """벤더 예외를 ProviderError로 감쌉니다. 이미 정규화된 오류는 그대로 반환합니다."""
        if isinstance(exc, PubMedInsightError):
            return exc
        message = f"{self.provider_name} {action} 실패: {self._describe_error(exc)}"
        return ProviderError(message, provider=self.name, status_code=self._status_code_of(exc))

    # --- 연결 테스트 ---
    async def test_connection(self, override: ConfigLike = None) -> ConnectionResult:
        """
        최소 비용 요청 한 번으로 연결을 확인합니다. 예외를 던지지 않습니다.

        Args:
            override: 현재 설정 위에 덮어쓸 임시 설정 (어댑터 설정은 바뀌지 않음)

        Returns:
            ConnectionResult: 성공 시 model_info 포함, 실패 시 error 메시지 포함
        """
        cfg = self._config.merged(override)
        try:
            self.validate_config(cfg)
        except ConfigurationError as e:
            logger.warning(f"{self.name} 설정 검증 실패: {e.message}")
            return ConnectionResult(success=False, error=e.message)

        model = cfg.model or self.default_model
        try:
            version = await self._send_test_request(cfg)
        except Exception as e:
            message = self._describe_error(e)
            logger.warning(f"{self.name} 연결 테스트 실패: {message}")
            return ConnectionResult(success=False, error=message)

        info = self.get_model_info(model)
        info.version = version or 'unknown'
        logger.success(f"{self.name} 연결 테스트 성공 (모델: {model})")
        return ConnectionResult(success=True, message=f"{self.provider_name} 연결 성공", model_info=info)

    @abstractmethod
    async def _send_test_request(self, cfg: ModelConfig) -> Optional[str]:
        """cfg로 최소 생성 요청을 보내고 응답의 모델 버전을 반환합니다. 실패하면 예외를 던집니다."""

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        options: Union[GenerationOptions, Mapping[str, Any], None] = None
    ) -> GenerationResult:
        """
        텍스트를 생성합니다.

        Raises:
            ConfigurationError: API 키 누락/형식 오류
            ProviderError: 전송 실패, 인증 실패, 빈 응답 등
        """

    # --- 배치 분석 ---
    async def batch_analyze(
        self,
        items: Sequence[Union[AnalysisItem, Mapping[str, Any]]],
        options: Union[AnalysisOptions, Mapping[str, Any], None] = None
    ) -> AnalysisResult:
        """
        여러 문헌을 하나의 프롬프트로 묶어 한 번의 generate_text 호출로 분석합니다.

        Args:
            items: AnalysisItem 또는 dict 목록
            options: 분석 유형, 언어, max_tokens 등

        Returns:
            AnalysisResult: 섹션 파싱 결과와 사용량/비용
        """
        opts = AnalysisOptions.from_value(options)
        analysis_items: List[AnalysisItem] = [
            item if isinstance(item, AnalysisItem) else AnalysisItem.from_dict(item)
            for item in items or []
        ]
        if not analysis_items:
            raise ConfigurationError("분석할 문헌이 없습니다")

        start_time = time.time()
        prompt = build_analysis_prompt(analysis_items, opts)
        generation_options = GenerationOptions(
            max_tokens=opts.max_tokens or BATCH_MAX_TOKENS,
            temperature=DEFAULT_TEMPERATURE if opts.temperature is None else opts.temperature,
        )

        try:
            result = await self.generate_text(prompt, generation_options)
        except ProviderError as e:
            raise ProviderError(f"배치 분석 실패: {e.message}", provider=self.name, status_code=e.status_code) from e

        parsed = parse_analysis_result(result.text, analysis_items, opts)
        logger.info(f"{self.name} 배치 분석 완료 (문헌 {len(analysis_items)}편)")
        return AnalysisResult(
            summary=parsed['summary'],
            key_findings=parsed['key_findings'],
            research_suggestions=parsed['research_suggestions'],
            analyses=parsed['analyses'],
            usage=result.usage,
            cost=result.cost,
            processing_time=time.time() - start_time,
            model_name=self.name,
        )
