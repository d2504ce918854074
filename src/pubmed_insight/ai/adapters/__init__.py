"""
프로바이더별 모델 어댑터.
"""

from .claude_adapter import ClaudeAdapter
from .deepseek_adapter import DeepSeekAdapter
from .gemini_adapter import GeminiAdapter
from .openai_adapter import OpenAIAdapter

ADAPTER_CLASSES = {
    'openai': OpenAIAdapter,
    'claude': ClaudeAdapter,
    'gemini': GeminiAdapter,
    'deepseek': DeepSeekAdapter,
}

__all__ = ['OpenAIAdapter', 'ClaudeAdapter', 'GeminiAdapter', 'DeepSeekAdapter', 'ADAPTER_CLASSES']
