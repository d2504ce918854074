"""
기사 레코드를 키워드 추출용 문서로 변환하고 코퍼스 통계를 계산하는 모듈.
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from pubmed_insight.models import CorpusStats, KeywordReport, KeywordResult, TFIDFOptions

from .tfidf import OptionsLike, TFIDFEngine
from .tokenizer import Tokenizer


def article_to_document(article: Mapping[str, Any]) -> str:
    """기사 레코드를 '제목 초록 키워드' 형태의 텍스트 하나로 합칩니다.

    비어 있는 필드는 건너뛰며, keywords는 리스트일 때만 사용합니다.
    """
    title = article.get('title') or ''
    abstract = article.get('abstract') or ''
    keywords = article.get('keywords')
    keyword_text = ' '.join(str(kw) for kw in keywords) if isinstance(keywords, list) else ''
    return ' '.join(part for part in (title, abstract, keyword_text) if part.strip())


def build_documents(articles: Optional[Sequence[Mapping[str, Any]]]) -> List[str]:
    """제목과 초록이 모두 없는 레코드를 제외하고 문서 목록을 만듭니다."""
    if not articles:
        return []
    valid = [a for a in articles if a and (a.get('title') or a.get('abstract'))]
    skipped = len(articles) - len(valid)
    if skipped:
        logger.warning(f"제목/초록이 없는 기사 {skipped}건을 제외했습니다")
    return [article_to_document(article) for article in valid]


def compute_corpus_stats(
    documents: Sequence[str],
    keywords: Sequence[KeywordResult],
    tokenizer: Optional[Tokenizer] = None,
    min_word_length: int = 3
) -> CorpusStats:
    """
    코퍼스 통계를 계산합니다.

    Args:
        documents: 키워드 추출에 사용한 문서 목록
        keywords: 추출된 키워드
        tokenizer: 주어지면 필터링 후 고유 토큰 수를 어휘 크기로 사용
        min_word_length: tokenizer 사용 시 최소 토큰 길이

    Returns:
        CorpusStats: 문서 수, 어휘 크기, 고유 키워드 수, 문서당 평균 단어 수
    """
    total = len(documents)
    if total == 0:
        return CorpusStats(0, 0, 0, 0.0)

    if tokenizer is not None:
        vocabulary = set()
        for doc in documents:
            vocabulary.update(tokenizer.process(doc, min_word_length))
        vocabulary_size = len(vocabulary)
    else:
        vocabulary_size = len(keywords)

    average = sum(len(doc.split()) for doc in documents) / total
    return CorpusStats(
        total_documents=total,
        vocabulary_size=vocabulary_size,
        total_unique_words=len(keywords),
        average_words_per_document=average,
    )


class KeywordExtractionService:
    """기사 목록 → 키워드 + 코퍼스 통계."""

    def __init__(self, engine: Optional[TFIDFEngine] = None):
        self.engine = engine or TFIDFEngine()

    def extract_from_articles(
        self,
        articles: Optional[Sequence[Mapping[str, Any]]],
        options: OptionsLike = None
    ) -> KeywordReport:
        """
        기사 레코드 목록에서 키워드를 추출합니다.

        Args:
            articles: title/abstract/keywords 필드를 가진 dict 목록
            options: TF-IDF 옵션

        Returns:
            KeywordReport: 키워드, 통계, 실제 적용된 옵션
        """
        opts = TFIDFOptions.from_value(options)
        opts.validate()

        start_time = time.time()
        documents = build_documents(articles)
        logger.info(f"키워드 추출 시작: 문서 {len(documents)}개")

        keywords = self.engine.extract_keywords(documents, opts)
        stats = compute_corpus_stats(documents, keywords, self.engine.tokenizer, opts.min_word_length)

        metadata: Dict[str, Any] = {
            'processing_time': time.time() - start_time,
            'skipped_articles': len(articles or []) - len(documents),
        }
        logger.success(f"키워드 추출 완료: {len(keywords)}개 (어휘 {stats.vocabulary_size}개)")
        return KeywordReport(keywords=keywords, stats=stats, options=opts, metadata=metadata)
