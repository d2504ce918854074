"""
환경 설정으로부터 AIServiceManager를 구성하는 팩토리.
"""

from loguru import logger

from pubmed_insight.config import Config, config as default_config
from pubmed_insight.errors import ConfigurationError
from pubmed_insight.logging_setup import mask_api_key

from .adapters import ADAPTER_CLASSES, DeepSeekAdapter
from .manager import AIServiceManager
from .models import ManagerConfig, ModelConfig


def build_manager_config(cfg: Config = default_config) -> ManagerConfig:
    """환경 변수 기반 매니저 정책."""
    return ManagerConfig(
        enable_caching=cfg.is_caching_enabled(),
        cache_timeout=cfg.get_cache_timeout(),
        max_retries=max(1, cfg.get_max_retry_count()),
        retry_delay=max(0.0, cfg.get_retry_delay()),
    )


def create_default_manager(cfg: Config = default_config) -> AIServiceManager:
    """
    네 프로바이더(openai, claude, gemini, deepseek) 어댑터를 등록한 매니저를 만듭니다.

    환경 변수에 API 키가 있는 프로바이더는 사용 가능 상태로 표시합니다.
    개발 모드에서는 DeepSeek가 테스트 키로 모의 응답을 반환하며 사용 가능으로 표시됩니다.

    Args:
        cfg: 설정 객체 (기본값: 전역 config)

    Returns:
        AIServiceManager: 어댑터가 등록된 매니저
    """
    manager = AIServiceManager(build_manager_config(cfg))
    timeout = cfg.get_request_timeout()
    development_mode = cfg.is_development_mode()

    for name, adapter_cls in ADAPTER_CLASSES.items():
        api_key = cfg.get_api_key(name)
        if name == 'deepseek' and not api_key and development_mode:
            api_key = 'sk-test-key-for-development'

        model_config = ModelConfig(
            api_key=api_key,
            base_url=cfg.get_base_url(name),
            model=cfg.get_model_name(name),
        )
        if adapter_cls is DeepSeekAdapter:
            model_config.base_url = cfg.get_deepseek_base_url()
            adapter = DeepSeekAdapter(model_config, timeout, development_mode=development_mode)
        else:
            adapter = adapter_cls(model_config, timeout)

        manager.register_adapter(name, adapter)
        if not api_key:
            continue
        try:
            adapter.validate_config(model_config)
        except ConfigurationError as e:
            logger.warning(f"{name} 키 설정을 사용할 수 없습니다: {e.message}")
            continue
        manager.set_model_status(name, True)
        logger.info(f"{name} 사용 가능 (키: {mask_api_key(api_key)})")

    return manager
