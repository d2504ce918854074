"""
AI 어댑터/매니저 계층의 데이터 모델.

설정, 생성 옵션, 생성 결과, 배치 분석 결과, 모델 상태 등을 dataclass로 정의합니다.
외부(JSON) 입력은 camelCase 키도 받아들이며, 알 수 없는 키는 ConfigurationError로 거부합니다.
"""

import copy
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Union

from pubmed_insight.errors import ConfigurationError

_COMMON_ALIASES = {
    'apiKey': 'api_key',
    'baseUrl': 'base_url',
    'maxTokens': 'max_tokens',
    'topP': 'top_p',
    'frequencyPenalty': 'frequency_penalty',
    'presencePenalty': 'presence_penalty',
    'systemPrompt': 'system_prompt',
    'analysisType': 'analysis_type',
    'customPrompt': 'custom_prompt',
    'includeVisualization': 'include_visualization',
    'publicationDate': 'publication_date',
}


def _normalize_keys(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    """camelCase 키를 필드명으로 바꾸고 알 수 없는 키를 거부합니다."""
    known = {f.name for f in fields(cls)}
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        name = _COMMON_ALIASES.get(key, key)
        if name not in known:
            raise ConfigurationError(f"{cls.__name__}: 알 수 없는 필드 '{key}'")
        kwargs[name] = value
    return kwargs


@dataclass
class ModelConfig:
    """프로바이더 연결/생성 설정.

    Attributes:
        api_key: API 키 (필수, 비밀 값)
        base_url: 엔드포인트 재정의
        model: 프로바이더의 모델 식별자
        temperature/max_tokens/top_p/frequency_penalty/presence_penalty: 생성 기본값
        extras: 프로바이더 전용 전달 필드
    """
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    # 변경되면 벤더 클라이언트를 다시 만들어야 하는 필드
    CONNECTION_FIELDS: ClassVar[FrozenSet[str]] = frozenset({'api_key', 'base_url', 'model'})

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'ModelConfig':
        """dict로부터 설정을 만듭니다. 전달 필드는 extras 키로만 받습니다."""
        if not data:
            return cls()
        kwargs = _normalize_keys(cls, data)
        extras = kwargs.get('extras') or {}
        if not isinstance(extras, Mapping):
            raise ConfigurationError("ModelConfig: extras는 dict여야 합니다")
        kwargs['extras'] = dict(extras)
        return cls(**kwargs)

    def merged(self, other: Union['ModelConfig', Mapping[str, Any], None]) -> 'ModelConfig':
        """other의 None이 아닌 필드만 덮어쓴 새 설정을 반환합니다."""
        if other is None:
            return self.copy()
        if not isinstance(other, ModelConfig):
            other = ModelConfig.from_dict(other)
        result = self.copy()
        for f in fields(self):
            if f.name == 'extras':
                continue
            value = getattr(other, f.name)
            if value is not None:
                setattr(result, f.name, value)
        result.extras.update(other.extras)
        return result

    def changed_fields(self, other: 'ModelConfig') -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) != getattr(other, f.name)]

    def copy(self) -> 'ModelConfig':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ModelInfo:
    """모델 메타데이터."""
    name: str
    provider: str
    version: str
    description: str
    max_tokens: int
    cost_per_1k_tokens: float
    supported_features: List[str] = field(default_factory=list)


@dataclass
class ConnectionResult:
    """연결 테스트 결과. 실패해도 예외 대신 이 값을 반환합니다."""
    success: bool
    latency: Optional[float] = None
    error: Optional[str] = None
    message: Optional[str] = None
    model_info: Optional[ModelInfo] = None


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def of(cls, prompt_tokens: int, completion_tokens: int) -> 'TokenUsage':
        return cls(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens)


@dataclass
class GenerationOptions:
    """호출 단위 생성 옵션. None인 필드는 어댑터에 저장된 기본값을 따릅니다."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    system_prompt: Optional[str] = None

    @classmethod
    def from_value(cls, value: Union['GenerationOptions', Mapping[str, Any], None]) -> 'GenerationOptions':
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls(**_normalize_keys(cls, value))

    def to_dict(self) -> Dict[str, Any]:
        """None 필드를 제외한 정규화된 dict (캐시 키 생성용)."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class GenerationResult:
    """단일 텍스트 생성 결과."""
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float = 0.0
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def tokens_used(self) -> int:
        return self.usage.total_tokens


@dataclass
class AnalysisItem:
    """배치 분석 대상 문헌."""
    id: str
    title: str
    abstract: str = ''
    authors: Union[str, List[str], None] = None
    journal: Optional[str] = None
    year: Optional[str] = None
    publication_date: Optional[str] = None
    doi: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AnalysisItem':
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _COMMON_ALIASES.get(key, key)
            # PubMed 레코드의 부가 필드(pmid 등)는 무시
            if name in known:
                kwargs[name] = value
        if 'id' not in kwargs:
            kwargs['id'] = str(data.get('pmid', ''))
        if 'year' not in kwargs and kwargs.get('publication_date'):
            kwargs['year'] = str(kwargs['publication_date'])[:4]
        kwargs.setdefault('title', '')
        kwargs['id'] = str(kwargs['id'])
        if kwargs.get('year') is not None:
            kwargs['year'] = str(kwargs['year'])
        return cls(**kwargs)

    def authors_text(self) -> str:
        if isinstance(self.authors, (list, tuple)):
            return ', '.join(self.authors)
        return self.authors or ''


ANALYSIS_TYPES = ('comprehensive', 'methodology', 'results', 'trends', 'summary', 'keywords', 'research_suggestions')


@dataclass
class AnalysisOptions:
    """배치 분석 옵션.

    language는 'zh'로 시작하면 중국어 프롬프트, 그 외에는 영어 프롬프트를 사용합니다.
    """
    analysis_type: str = 'comprehensive'
    language: str = 'zh'
    depth: Optional[str] = None
    include_visualization: bool = False
    custom_prompt: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    @classmethod
    def from_value(cls, value: Union['AnalysisOptions', Mapping[str, Any], None]) -> 'AnalysisOptions':
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls(**_normalize_keys(cls, value))

    @property
    def is_chinese(self) -> bool:
        return (self.language or '').lower().startswith('zh')

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ItemAnalysis:
    id: str
    title: str
    analysis: str
    tags: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """배치 문헌 분석 결과. processing_time 단위는 초."""
    summary: str
    key_findings: List[str] = field(default_factory=list)
    research_suggestions: List[str] = field(default_factory=list)
    analyses: List[ItemAnalysis] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float = 0.0
    processing_time: float = 0.0
    model_name: Optional[str] = None


@dataclass
class ModelStatus:
    """모델별 상태 기록. 등록 시 생성되어 프로세스 수명 동안 유지됩니다."""
    name: str
    is_available: bool = False
    last_checked: datetime = field(default_factory=datetime.now)
    latency: Optional[float] = None
    error: Optional[str] = None


@dataclass
class ManagerConfig:
    """AIServiceManager 정책 설정 (cache_timeout, retry_delay 단위는 초)."""
    enable_caching: bool = True
    cache_timeout: float = 300.0
    max_retries: int = 3
    retry_delay: float = 1.0

    def __post_init__(self):
        if self.max_retries < 1:
            raise ConfigurationError("max_retries는 1 이상이어야 합니다")
        if self.retry_delay < 0 or self.cache_timeout < 0:
            raise ConfigurationError("retry_delay와 cache_timeout은 0 이상이어야 합니다")


@dataclass
class ModelConfigOverride:
    """요청 단위로 전달되는 모델 자격 증명 재정의 ({name, enabled, apiKey, baseUrl, model})."""
    name: str
    enabled: bool = True
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ModelConfigOverride':
        kwargs = _normalize_keys(cls, data)
        if not kwargs.get('name'):
            raise ConfigurationError("모델 설정에 name이 필요합니다")
        return cls(**kwargs)

    def to_model_config(self) -> ModelConfig:
        return ModelConfig(api_key=self.api_key, base_url=self.base_url, model=self.model)
