"""
TF-IDF 키워드 추출 엔진.

문서 집합 전체에서 용어의 변별력을 점수화하여 상위 키워드를 반환합니다.
동일한 (문서, 옵션) 입력에 대해서는 FIFO 캐시에 저장된 결과를 재사용합니다.
"""

import hashlib
import json
import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from loguru import logger

from pubmed_insight.models import KeywordResult, TFIDFOptions
from pubmed_insight.utils.cache import FIFOCache

from .tokenizer import Tokenizer

OptionsLike = Union[TFIDFOptions, Mapping[str, Any], None]


class TFIDFEngine:
    """TF-IDF 점수 계산기.

    불용어 집합(토크나이저)과 결과 캐시를 인스턴스 상태로 가집니다.
    여러 호출자가 같은 인스턴스를 공유하려면 명시적으로 주입해서 사용합니다.

    Attributes:
        tokenizer (Tokenizer): 토큰 분리 및 필터링 담당.
        cache (FIFOCache): (문서, 옵션) → 결과 리스트 캐시.
    """

    def __init__(self, tokenizer: Optional[Tokenizer] = None, cache_max_size: int = 100):
        self.tokenizer = tokenizer or Tokenizer()
        self.cache = FIFOCache(max_size=cache_max_size)
        logger.info(f"TF-IDF 엔진 초기화 (캐시 크기: {cache_max_size})")

    def extract_keywords(
        self,
        documents: Optional[Sequence[str]],
        options: OptionsLike = None
    ) -> List[KeywordResult]:
        """
        문서 집합에서 TF-IDF 상위 키워드를 추출합니다.

        Args:
            documents: 원문 텍스트 목록. 비어 있거나 None이면 빈 리스트를 반환합니다.
            options: TFIDFOptions 또는 dict (camelCase 키 허용)

        Returns:
            List[KeywordResult]: tfidf 내림차순으로 정렬 후 상위 비율만큼 자른 결과

        Raises:
            ConfigurationError: 옵션 값이 유효하지 않을 경우
        """
        opts = TFIDFOptions.from_value(options)
        opts.validate()

        if not documents:
            return []

        docs = [doc or '' for doc in documents]
        cache_key = self._make_cache_key(docs, opts)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"TF-IDF 캐시 적중 (문서 {len(docs)}개)")
            return list(cached)

        results = self._compute(docs, opts)
        self.cache.set(cache_key, tuple(results))
        logger.info(f"TF-IDF 키워드 추출 완료: 문서 {len(docs)}개 → 키워드 {len(results)}개")
        return results

    def _compute(self, documents: List[str], opts: TFIDFOptions) -> List[KeywordResult]:
        total_documents = len(documents)
        doc_counters = [
            Counter(self.tokenizer.process(doc, opts.min_word_length))
            for doc in documents
        ]

        # 삽입 순서를 보존하는 어휘 사전 (동점 시 안정 정렬 기준)
        frequency: Dict[str, int] = {}
        document_count: Dict[str, int] = {}
        for counter in doc_counters:
            for word, count in counter.items():
                frequency[word] = frequency.get(word, 0) + count
                document_count[word] = document_count.get(word, 0) + 1

        idf = {
            word: math.log(total_documents / (df_abs + 1))
            for word, df_abs in document_count.items()
        }

        score_sum: Dict[str, float] = dict.fromkeys(frequency, 0.0)
        for counter in doc_counters:
            doc_length = sum(counter.values())
            if doc_length == 0:
                continue
            for word, count in counter.items():
                score_sum[word] += (count / doc_length) * idf[word]

        candidates = []
        for word in frequency:
            df_abs = document_count[word]
            result = KeywordResult(
                word=word,
                tf=score_sum[word] / total_documents,
                df=df_abs / total_documents,
                idf=idf[word],
                tfidf=score_sum[word] / df_abs,
                frequency=frequency[word],
                document_count=df_abs,
            )
            if self._passes_filters(result, opts):
                candidates.append(result)

        candidates.sort(key=lambda kw: kw.tfidf, reverse=True)
        if not candidates:
            return []
        keep = max(1, math.floor(len(candidates) * opts.top_percentage))
        return candidates[:keep]

    @staticmethod
    def _passes_filters(result: KeywordResult, opts: TFIDFOptions) -> bool:
        max_freq = opts.max_word_frequency
        if max_freq is not None and max_freq >= 1 and result.frequency > max_freq:
            return False
        if result.df > opts.max_document_frequency:
            return False
        return True

    @staticmethod
    def _make_cache_key(documents: List[str], opts: TFIDFOptions) -> str:
        digest = hashlib.sha256()
        digest.update(json.dumps(documents, ensure_ascii=False).encode('utf-8'))
        digest.update(b'\x00')
        digest.update(opts.cache_token().encode('utf-8'))
        return digest.hexdigest()

    # --- 관리 기능 ---
    def add_stopwords(self, words: Iterable[str]) -> None:
        """불용어를 추가합니다. 집합이 바뀌면 결과 캐시를 비웁니다."""
        if self.tokenizer.add_stopwords(words):
            self.clear_cache()

    def remove_stopwords(self, words: Iterable[str]) -> None:
        """불용어를 제거합니다. 없는 단어는 무시합니다."""
        if self.tokenizer.remove_stopwords(words):
            self.clear_cache()

    def get_stopwords(self) -> List[str]:
        return self.tokenizer.get_stopwords()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("TF-IDF 결과 캐시가 비워졌습니다")

    def get_cache_stats(self) -> Dict[str, int]:
        return self.cache.get_stats()
