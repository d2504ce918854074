"""
멀티 프로바이더 AI 어댑터 및 서비스 매니저 패키지.
"""

from pubmed_insight.errors import AIServiceError, ConfigurationError, ModelUnavailableError, ProviderError

from .adapters import ClaudeAdapter, DeepSeekAdapter, GeminiAdapter, OpenAIAdapter
from .base import BaseModelAdapter
from .factory import build_manager_config, create_default_manager
from .manager import AIServiceManager
from .models import (
    AnalysisItem,
    AnalysisOptions,
    AnalysisResult,
    ConnectionResult,
    GenerationOptions,
    GenerationResult,
    ItemAnalysis,
    ManagerConfig,
    ModelConfig,
    ModelConfigOverride,
    ModelInfo,
    ModelStatus,
    TokenUsage,
)

__all__ = [
    'AIServiceManager',
    'BaseModelAdapter',
    'OpenAIAdapter',
    'ClaudeAdapter',
    'GeminiAdapter',
    'DeepSeekAdapter',
    'create_default_manager',
    'build_manager_config',
    'AnalysisItem',
    'AnalysisOptions',
    'AnalysisResult',
    'ConnectionResult',
    'GenerationOptions',
    'GenerationResult',
    'ItemAnalysis',
    'ManagerConfig',
    'ModelConfig',
    'ModelConfigOverride',
    'ModelInfo',
    'ModelStatus',
    'TokenUsage',
    'AIServiceError',
    'ConfigurationError',
    'ModelUnavailableError',
    'ProviderError',
]
