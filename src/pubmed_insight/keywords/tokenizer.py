"""
중영 혼합 텍스트용 토크나이저.

처리 순서:
1. 소문자 변환
2. 단어 문자, CJK 한자(U+4E00~U+9FFF), 공백, 하이픈 이외의 문자를 공백으로 치환
3. 공백 기준 분리
4. 한자가 섞인 조각은 한자 한 글자씩 분해하고, 그 사이의 [a-z0-9-] 연속 구간은 하나의 토큰으로 묶음
5. 길이/불용어/숫자 필터 적용
"""

import re
from typing import Iterable, List, Optional, Set

from loguru import logger

from .stopwords import DEFAULT_STOPWORDS

_NORMALIZE_PATTERN = re.compile(r'[^\w一-鿿\s-]')
_CJK_PATTERN = re.compile(r'[一-鿿]')
_LATIN_RUN_CHAR = re.compile(r'[a-z0-9-]')
_NUMERIC_PATTERN = re.compile(r'^[0-9]+$')


def is_cjk(char: str) -> bool:
    """단일 문자가 CJK 통합 한자인지 확인합니다."""
    return len(char) == 1 and '一' <= char <= '鿿'


class Tokenizer:
    """불용어 집합을 인스턴스 상태로 가지는 토크나이저.

    불용어 집합은 add_stopwords/remove_stopwords로 런타임에 변경할 수 있으며,
    이후 모든 filter_tokens 호출에 반영됩니다.
    """

    def __init__(self, stopwords: Optional[Iterable[str]] = None):
        source = DEFAULT_STOPWORDS if stopwords is None else stopwords
        self._stopwords: Set[str] = {word.lower() for word in source}
        logger.debug(f"토크나이저 초기화 (불용어 {len(self._stopwords)}개)")

    def tokenize(self, text: Optional[str]) -> List[str]:
        """텍스트를 정규화하고 토큰으로 분리합니다 (필터 미적용).

        Examples:
            >>> Tokenizer().tokenize("COVID-19 疫苗efficacy")
            ['covid-19', '疫', '苗', 'efficacy']
        """
        if not text:
            return []

        normalized = _NORMALIZE_PATTERN.sub(' ', text.lower())
        tokens: List[str] = []
        for segment in normalized.split():
            if _CJK_PATTERN.search(segment):
                tokens.extend(self._split_mixed_segment(segment))
            else:
                tokens.append(segment)
        return tokens

    @staticmethod
    def _split_mixed_segment(segment: str) -> List[str]:
        tokens = []
        run = ''
        for char in segment:
            if is_cjk(char):
                if run:
                    tokens.append(run)
                    run = ''
                tokens.append(char)
            elif _LATIN_RUN_CHAR.match(char):
                run += char
            elif run:
                tokens.append(run)
                run = ''
        if run:
            tokens.append(run)
        return tokens

    def filter_tokens(self, tokens: Iterable[str], min_word_length: int = 3) -> List[str]:
        """길이, 불용어, 숫자 규칙으로 토큰을 걸러냅니다.

        Args:
            tokens: tokenize 결과
            min_word_length: 최소 길이 (CJK 한 글자는 예외)

        Returns:
            List[str]: 남은 토큰 (입력 순서 유지)
        """
        kept = []
        for token in tokens:
            single_cjk = is_cjk(token)
            if len(token) < min_word_length and not single_cjk:
                continue
            if token in self._stopwords:
                continue
            if _NUMERIC_PATTERN.match(token):
                continue
            if len(token) == 1 and not single_cjk:
                continue
            kept.append(token)
        return kept

    def process(self, text: Optional[str], min_word_length: int = 3) -> List[str]:
        """tokenize + filter_tokens."""
        return self.filter_tokens(self.tokenize(text), min_word_length)

    # --- 불용어 관리 ---
    def add_stopwords(self, words: Iterable[str]) -> int:
        """불용어를 추가합니다 (소문자로 정규화). 새로 추가된 개수를 반환합니다."""
        before = len(self._stopwords)
        self._stopwords.update(word.strip().lower() for word in words if word and word.strip())
        added = len(self._stopwords) - before
        if added:
            logger.info(f"불용어 {added}개 추가됨 (총 {len(self._stopwords)}개)")
        return added

    def remove_stopwords(self, words: Iterable[str]) -> int:
        """불용어를 제거합니다. 없는 단어는 무시하며, 실제로 제거된 개수를 반환합니다."""
        removed = 0
        for word in words:
            key = word.strip().lower() if word else ''
            if key in self._stopwords:
                self._stopwords.discard(key)
                removed += 1
        if removed:
            logger.info(f"불용어 {removed}개 제거됨 (총 {len(self._stopwords)}개)")
        return removed

    def get_stopwords(self) -> List[str]:
        return sorted(self._stopwords)

    def is_stopword(self, word: str) -> bool:
        return word.lower() in self._stopwords
