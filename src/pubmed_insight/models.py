"""
키워드 추출 계층에서 사용하는 데이터 모델(dataclasses)을 정의하는 모듈.

TF-IDF 점수 결과, 추출 옵션, 코퍼스 통계를 구조화된 형태로 제공합니다.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from pubmed_insight.errors import ConfigurationError

SUPPORTED_LANGUAGES = ('zh', 'en', 'mixed')


@dataclass(frozen=True)
class KeywordResult:
    """TF-IDF로 점수가 매겨진 단일 용어.

    Attributes:
        word (str): 정규화된 토큰.
        tf (float): 문서별 tf·idf 합계를 전체 문서 수로 나눈 값 (순수 단어 빈도가 아님).
        df (float): 용어를 포함한 문서의 비율 (0 ~ 1).
        idf (float): ln(N / (df_abs + 1)). 모든 문서에 등장하면 음수가 될 수 있음.
        tfidf (float): 용어가 등장한 문서들의 tf·idf 평균 (순위 기준).
        frequency (int): 코퍼스 전체 등장 횟수.
        document_count (int): 용어를 포함한 문서 수.
    """
    word: str
    tf: float
    df: float
    idf: float
    tfidf: float
    frequency: int
    document_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TFIDFOptions:
    """키워드 추출 옵션.

    Attributes:
        min_word_length (int): 최소 토큰 길이 (CJK 단일 문자는 예외).
        max_word_frequency (Optional[float]): 총 등장 횟수 상한. 1 미만이면 적용하지 않음.
        max_document_frequency (float): 허용하는 최대 문서 빈도 비율.
        top_percentage (float): 정렬 후 유지할 상위 비율.
        language (str): 'zh', 'en', 'mixed' 중 하나 (정보용).
    """
    min_word_length: int = 3
    max_word_frequency: Optional[float] = None
    max_document_frequency: float = 0.8
    top_percentage: float = 0.35
    language: str = 'mixed'

    _ALIASES = {
        'minWordLength': 'min_word_length',
        'maxWordFrequency': 'max_word_frequency',
        'maxDocumentFrequency': 'max_document_frequency',
        'topPercentage': 'top_percentage',
    }

    @classmethod
    def from_value(cls, value: Union['TFIDFOptions', Mapping[str, Any], None]) -> 'TFIDFOptions':
        """TFIDFOptions, dict(camelCase 허용) 또는 None으로부터 옵션을 만듭니다."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, item in value.items():
            name = cls._ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"알 수 없는 키워드 추출 옵션: {key}")
            if item is not None:
                kwargs[name] = item
        return cls(**kwargs)

    def validate(self) -> None:
        """옵션 값의 유효성을 검사합니다.

        Raises:
            ConfigurationError: 음수 길이, 범위를 벗어난 비율 등.
        """
        if self.min_word_length < 0:
            raise ConfigurationError("min_word_length는 0 이상이어야 합니다")
        if self.max_word_frequency is not None and self.max_word_frequency < 0:
            raise ConfigurationError("max_word_frequency는 0 이상이어야 합니다")
        if not 0 < self.max_document_frequency <= 1:
            raise ConfigurationError("max_document_frequency는 0 초과 1 이하이어야 합니다")
        if not 0 < self.top_percentage <= 1:
            raise ConfigurationError("top_percentage는 0 초과 1 이하이어야 합니다")
        if self.language not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(f"지원하지 않는 language 값입니다: {self.language}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def cache_token(self) -> str:
        """캐시 키에 쓰이는 결정적 직렬화 문자열."""
        return json.dumps(self.to_dict(), sort_keys=True)


@dataclass
class CorpusStats:
    """키워드 추출 대상 코퍼스의 통계."""
    total_documents: int
    vocabulary_size: int
    total_unique_words: int
    average_words_per_document: float


@dataclass
class KeywordReport:
    """기사 목록에 대한 키워드 추출 결과 묶음."""
    keywords: List[KeywordResult]
    stats: CorpusStats
    options: TFIDFOptions
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'keywords': [kw.to_dict() for kw in self.keywords],
            'stats': asdict(self.stats),
            'options': self.options.to_dict(),
            'metadata': dict(self.metadata),
        }
