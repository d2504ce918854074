"""
TF-IDF 기반 키워드 추출 패키지.
"""

from .corpus import KeywordExtractionService, article_to_document, build_documents, compute_corpus_stats
from .stopwords import CHINESE_STOPWORDS, DEFAULT_STOPWORDS, ENGLISH_STOPWORDS
from .tfidf import TFIDFEngine
from .tokenizer import Tokenizer, is_cjk

__all__ = [
    'TFIDFEngine',
    'Tokenizer',
    'KeywordExtractionService',
    'article_to_document',
    'build_documents',
    'compute_corpus_stats',
    'is_cjk',
    'DEFAULT_STOPWORDS',
    'ENGLISH_STOPWORDS',
    'CHINESE_STOPWORDS',
]
