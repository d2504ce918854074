# tests/conftest.py
"""
Pytest 공통 픽스처(fixture)를 정의하는 파일
"""
from typing import List, Optional

import pytest

from pubmed_insight.ai.base import BaseModelAdapter
from pubmed_insight.ai.manager import AIServiceManager
from pubmed_insight.ai.models import GenerationResult, ManagerConfig, ModelConfig
from pubmed_insight.keywords import TFIDFEngine

SAMPLE_ANALYSIS_TEXT = (
    "## 总体概述\n"
    "两篇文献都关注肿瘤免疫治疗。\n\n"
    "## 关键发现\n"
    "1. PD-1 抑制剂显著延长生存期\n"
    "2. 联合治疗提高了应答率\n\n"
    "## 研究建议\n"
    "- 扩大样本量\n"
    "- 开展长期随访\n\n"
    "## 详细分析\n"
    "文献1为随机对照试验，文献2为队列研究。\n"
)


class FakeAdapter(BaseModelAdapter):
    """네트워크 없이 동작하는 테스트용 어댑터.

    failures에 넣은 예외를 순서대로 던진 뒤 reply를 반환합니다.
    """

    provider_name = 'Fake'
    default_model = 'fake-1'
    PRICING = {'fake-1': (0.001, 0.002)}
    TOKEN_LIMITS = {'fake-1': 8192}

    def __init__(self, config=None, name: str = 'fake', reply: str = 'generated text'):
        super().__init__(name, config if config is not None else ModelConfig(api_key='fake-key'))
        self.reply = reply
        self.failures: List[Exception] = []
        self.test_failure: Optional[Exception] = None
        self.calls = []
        self.test_calls = []

    async def _send_test_request(self, cfg):
        self.test_calls.append(cfg)
        if self.test_failure is not None:
            raise self.test_failure
        return cfg.model or self.default_model

    async def generate_text(self, prompt, options=None) -> GenerationResult:
        self._ensure_ready()
        self.calls.append((prompt, options))
        if self.failures:
            raise self.failures.pop(0)
        usage = self._build_usage(prompt, self.reply)
        return self._make_result(self.reply, usage, self.model_id, 'stop')


@pytest.fixture
def engine():
    """기본 불용어를 사용하는 TF-IDF 엔진."""
    return TFIDFEngine()


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def manager(fake_adapter):
    """재시도 대기 없이 fake 어댑터가 사용 가능 상태로 등록된 매니저."""
    mgr = AIServiceManager(ManagerConfig(retry_delay=0))
    mgr.register_adapter('fake', fake_adapter)
    mgr.set_model_status('fake', True)
    return mgr
