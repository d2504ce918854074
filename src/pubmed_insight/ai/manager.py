"""
AI 서비스 매니저.

등록된 어댑터의 레지스트리, 모델별 상태, 결과 캐시, 재시도 정책을 관리하는
단일 진입점입니다. 호출자는 어댑터를 직접 다루지 않고 이 매니저를 통해서만 요청합니다.
"""

import asyncio
import hashlib
import json
import time
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar, Union

from loguru import logger

from pubmed_insight.errors import ConfigurationError, ModelUnavailableError, PubMedInsightError
from pubmed_insight.logging_setup import mask_api_key
from pubmed_insight.utils.cache import TTLCache

from .base import BaseModelAdapter, ConfigLike
from .models import (
    AnalysisItem,
    AnalysisOptions,
    AnalysisResult,
    ConnectionResult,
    GenerationOptions,
    GenerationResult,
    ManagerConfig,
    ModelConfig,
    ModelConfigOverride,
    ModelStatus,
)

T = TypeVar('T')


class AIServiceManager:
    """여러 AI 어댑터를 관리하고 생성/분석 요청을 실행하는 매니저."""

    def __init__(self, config: Optional[ManagerConfig] = None):
        """
        매니저 초기화.

        Args:
            config: 캐시/재시도 정책. None이면 기본값(캐시 300초, 3회 시도, 1초 간격)
        """
        self.config = config or ManagerConfig()
        self._adapters: Dict[str, BaseModelAdapter] = {}
        self._statuses: Dict[str, ModelStatus] = {}
        self._cache = TTLCache(default_ttl=self.config.cache_timeout)
        logger.info(
            f"AI 서비스 매니저 초기화 (캐시: {self.config.enable_caching}, "
            f"TTL: {self.config.cache_timeout}s, 재시도: {self.config.max_retries}회)"
        )

    # --- 레지스트리 ---
    def register_adapter(self, name: str, adapter: BaseModelAdapter) -> None:
        """어댑터를 등록합니다. 상태는 첫 연결 테스트 전까지 사용 불가로 시작합니다."""
        self._adapters[name] = adapter
        self._statuses[name] = ModelStatus(name=name, is_available=False)
        logger.info(f"{name} 어댑터 등록됨")

    def get_registered_models(self) -> List[str]:
        return list(self._adapters.keys())

    def get_model_status(self, name: str) -> Optional[ModelStatus]:
        status = self._statuses.get(name)
        return replace(status) if status else None

    def set_model_status(self, name: str, status: Union[ModelStatus, bool]) -> None:
        """모델 상태를 직접 설정합니다. bool을 넘기면 가용 여부만 바꿉니다."""
        if name not in self._adapters:
            logger.warning(f"등록되지 않은 모델의 상태 설정 요청 무시: {name}")
            return
        if isinstance(status, bool):
            status = ModelStatus(name=name, is_available=status, last_checked=datetime.now())
        self._statuses[name] = replace(status, name=name)
        logger.debug(f"{name} 상태 변경: available={status.is_available}")

    def get_all_model_statuses(self) -> List[ModelStatus]:
        return [replace(status) for status in self._statuses.values()]

    def is_model_available(self, name: str) -> bool:
        status = self._statuses.get(name)
        return bool(status and status.is_available)

    # --- 연결 테스트 / 설정 ---
    async def test_model_connection(self, name: str, config: ConfigLike = None) -> ConnectionResult:
        """
        어댑터 연결을 테스트하고 결과와 관계없이 상태를 갱신합니다.

        Args:
            name: 등록된 모델 이름
            config: 테스트에 사용할 임시 설정 (현재 설정 위에 병합)

        Returns:
            ConnectionResult: latency(ms) 포함. 미등록 모델이면 실패 결과
        """
        adapter = self._adapters.get(name)
        if adapter is None:
            return ConnectionResult(success=False, error=f"모델 {name}이(가) 등록되지 않았습니다")

        start_time = time.perf_counter()
        try:
            result = await adapter.test_connection(config)
        except Exception as e:
            message = e.message if isinstance(e, PubMedInsightError) else f"연결 테스트 중 오류: {e}"
            result = ConnectionResult(success=False, error=message)
        latency = (time.perf_counter() - start_time) * 1000

        self._statuses[name] = ModelStatus(
            name=name,
            is_available=result.success,
            last_checked=datetime.now(),
            latency=latency if result.success else None,
            error=result.error,
        )
        result.latency = latency

        if result.success:
            logger.success(f"{name} 연결 확인 ({latency:.0f}ms)")
        else:
            logger.warning(f"{name} 연결 실패: {result.error}")
        return result

    def update_model_config(self, name: str, config: ConfigLike) -> None:
        """어댑터 설정을 병합합니다. 미등록 모델이면 아무것도 하지 않습니다."""
        adapter = self._adapters.get(name)
        if adapter is None:
            logger.debug(f"등록되지 않은 모델 설정 갱신 무시: {name}")
            return
        adapter.update_config(config)

    def get_model_config(self, name: str, masked: bool = False) -> Optional[ModelConfig]:
        """어댑터 설정 사본을 반환합니다. masked=True면 API 키를 가립니다."""
        adapter = self._adapters.get(name)
        if adapter is None:
            return None
        cfg = adapter.get_config()
        if masked:
            cfg.api_key = mask_api_key(cfg.api_key) or None
        return cfg

    def apply_model_configs(self, overrides: Optional[Sequence[Union[ModelConfigOverride, Mapping[str, Any]]]]) -> List[str]:
        """
        요청 단위 자격 증명 재정의를 적용합니다.

        enabled이고 api_key가 있는 항목만 update_model_config 후 사용 가능으로 표시합니다.

        Returns:
            List[str]: 적용된 모델 이름
        """
        applied = []
        for raw in overrides or []:
            override = raw if isinstance(raw, ModelConfigOverride) else ModelConfigOverride.from_dict(raw)
            if not override.enabled or not override.api_key:
                continue
            if override.name not in self._adapters:
                logger.warning(f"등록되지 않은 모델 설정은 건너뜁니다: {override.name}")
                continue
            self.update_model_config(override.name, override.to_model_config())
            self.set_model_status(override.name, True)
            applied.append(override.name)
        if applied:
            logger.info(f"요청 모델 설정 적용: {applied}")
        return applied

    # --- 생성 / 분석 ---
    async def generate_text(
        self,
        prompt: str,
        options: Union[GenerationOptions, Mapping[str, Any], None] = None,
        preferred_model: Optional[str] = None
    ) -> GenerationResult:
        """
        지정한 모델로 텍스트를 생성합니다.

        Args:
            prompt: 프롬프트
            options: 생성 옵션
            preferred_model: 대상 모델 이름 (필수)

        Raises:
            ConfigurationError: preferred_model이 없을 때
            ModelUnavailableError: 미등록 또는 사용 불가 모델
            AIServiceError: 모든 시도가 실패했을 때 마지막 오류
        """
        adapter = self._resolve_adapter(preferred_model)
        opts = GenerationOptions.from_value(options)
        cache_key = self._make_cache_key('generate_text', preferred_model, {
            'prompt': prompt,
            'options': opts.to_dict(),
        })

        return await self._cached_call(
            cache_key,
            preferred_model,
            '텍스트 생성',
            lambda: adapter.generate_text(prompt, opts),
        )

    async def batch_analyze(
        self,
        items: Sequence[Union[AnalysisItem, Mapping[str, Any]]],
        options: Union[AnalysisOptions, Mapping[str, Any], None] = None,
        preferred_model: Optional[str] = None
    ) -> AnalysisResult:
        """지정한 모델로 문헌 배치 분석을 실행합니다. 정책은 generate_text와 같습니다."""
        adapter = self._resolve_adapter(preferred_model)
        opts = AnalysisOptions.from_value(options)
        analysis_items = [
            item if isinstance(item, AnalysisItem) else AnalysisItem.from_dict(item)
            for item in items or []
        ]
        if not analysis_items:
            raise ConfigurationError("분석할 문헌이 없습니다")
        cache_key = self._make_cache_key('batch_analyze', preferred_model, {
            'items': [asdict(item) for item in analysis_items],
            'options': opts.to_dict(),
        })

        return await self._cached_call(
            cache_key,
            preferred_model,
            '배치 분석',
            lambda: adapter.batch_analyze(analysis_items, opts),
        )

    def _resolve_adapter(self, preferred_model: Optional[str]) -> BaseModelAdapter:
        if not preferred_model:
            raise ConfigurationError("AI 모델을 지정해야 합니다")
        adapter = self._adapters.get(preferred_model)
        if adapter is None:
            raise ModelUnavailableError(f"AI 모델 {preferred_model}이(가) 등록되지 않았습니다", preferred_model)
        if not self.is_model_available(preferred_model):
            raise ModelUnavailableError(f"지정한 AI 모델 {preferred_model}을(를) 사용할 수 없습니다", preferred_model)
        return adapter

    @staticmethod
    def _make_cache_key(operation: str, model: str, params: Dict[str, Any]) -> str:
        serialized = json.dumps(params, sort_keys=True, ensure_ascii=False, default=str)
        digest = hashlib.sha256(serialized.encode('utf-8')).hexdigest()
        return f"{operation}:{model}:{digest}"

    async def _cached_call(
        self,
        cache_key: str,
        model_name: str,
        action: str,
        call: Callable[[], Awaitable[T]]
    ) -> T:
        if self.config.enable_caching:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                logger.debug(f"{model_name} {action} 캐시 적중")
                return cached

        result = await self._run_with_retries(model_name, action, call)

        if self.config.enable_caching:
            await self._cache.set(cache_key, result)
        return result

    async def _run_with_retries(self, model_name: str, action: str, call: Callable[[], Awaitable[T]]) -> T:
        """고정 간격으로 최대 max_retries번 시도합니다. 설정 오류는 재시도하지 않습니다."""
        max_attempts = self.config.max_retries
        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                result = await call()
            except ConfigurationError as e:
                logger.error(f"{model_name} {action} 설정 오류: {e.message}")
                self._mark_failure(model_name, e.message)
                raise
            except Exception as e:
                last_error = e
                logger.warning(f"{model_name} {action} 실패 (시도 {attempt}/{max_attempts}): {e}")
                if attempt < max_attempts:
                    await asyncio.sleep(self.config.retry_delay)
                continue

            self._mark_success(model_name)
            if attempt > 1:
                logger.info(f"{model_name} {action} 성공 (시도 {attempt}/{max_attempts})")
            return result

        message = last_error.message if isinstance(last_error, PubMedInsightError) else str(last_error)
        logger.error(f"{model_name} {action} 최종 실패: {message}")
        self._mark_failure(model_name, message)
        raise last_error

    def _mark_success(self, name: str) -> None:
        status = self._statuses.get(name)
        if status is not None:
            status.last_checked = datetime.now()
            status.error = None

    def _mark_failure(self, name: str, message: str) -> None:
        status = self._statuses.get(name)
        if status is not None:
            status.is_available = False
            status.last_checked = datetime.now()
            status.error = message

    # --- 캐시 관리 ---
    async def clear_cache(self) -> None:
        await self._cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        """캐시 크기와 키 목록을 반환합니다."""
        return {
            'size': len(self._cache),
            'keys': self._cache.keys(),
        }
