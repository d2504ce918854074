"""
pubmed-insight 명령줄 인터페이스.

Examples:
  pubmed-insight keywords articles.json --top-percentage 0.2
  pubmed-insight keywords articles.json --add-stopword crispr --remove-stopword review
  pubmed-insight stopwords --add crispr --remove review
  pubmed-insight models --test
  pubmed-insight generate "Summarize CRISPR trends" --model deepseek
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from loguru import logger

from pubmed_insight.ai import create_default_manager
from pubmed_insight.config import config
from pubmed_insight.errors import PubMedInsightError
from pubmed_insight.keywords import KeywordExtractionService, TFIDFEngine
from pubmed_insight.logging_setup import setup_logging


class PubMedInsightCLI:
    """키워드 추출, 불용어 관리, 모델 상태 확인용 CLI."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="pubmed-insight",
            description="PubMed 문헌 키워드 추출 및 AI 분석 도구",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=__doc__.split("Examples:", 1)[1],
        )
        parser.add_argument("--verbose", "-v", action="store_true", help="디버그 로그 출력")
        subparsers = parser.add_subparsers(dest="command", required=True)

        keywords = subparsers.add_parser("keywords", help="기사 JSON 파일에서 TF-IDF 키워드 추출")
        keywords.add_argument("articles", help="기사 목록 JSON 파일 (list 또는 {'articles': [...]})")
        keywords.add_argument("--min-word-length", type=int, default=3)
        keywords.add_argument("--max-word-frequency", type=float, default=None)
        keywords.add_argument("--max-document-frequency", type=float, default=0.8)
        keywords.add_argument("--top-percentage", type=float, default=0.35)
        keywords.add_argument("--language", choices=["zh", "en", "mixed"], default="mixed")
        keywords.add_argument("--json", action="store_true", help="결과를 JSON으로 출력")
        keywords.add_argument("--add-stopword", nargs="*", default=[], metavar="WORD",
                              help="이번 추출에서 추가로 제외할 불용어")
        keywords.add_argument("--remove-stopword", nargs="*", default=[], metavar="WORD",
                              help="이번 추출에서 불용어 목록에서 뺄 단어")

        stopwords = subparsers.add_parser(
            "stopwords",
            help="불용어 목록 출력",
            description="기본 불용어 목록에 --add/--remove를 적용한 결과를 출력합니다. "
                        "변경 사항은 저장되지 않으므로 추출에 반영하려면 "
                        "keywords 명령의 --add-stopword/--remove-stopword를 사용하십시오.",
        )
        stopwords.add_argument("--add", nargs="*", default=[], help="목록에 추가해 볼 불용어 (저장되지 않음)")
        stopwords.add_argument("--remove", nargs="*", default=[], help="목록에서 빼 볼 불용어 (저장되지 않음)")

        models = subparsers.add_parser("models", help="등록된 모델과 상태 출력")
        models.add_argument("--test", action="store_true", help="각 모델 연결 테스트 실행")

        generate = subparsers.add_parser("generate", help="지정한 모델로 텍스트 생성")
        generate.add_argument("prompt", help="프롬프트")
        generate.add_argument("--model", "-m", required=True, help="모델 이름 (openai, claude, gemini, deepseek)")
        generate.add_argument("--max-tokens", type=int, default=None)
        generate.add_argument("--temperature", type=float, default=None)

        return parser

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        CLI를 실행합니다.

        Args:
            args: 명령줄 인자 (None이면 sys.argv 사용)

        Returns:
            종료 코드 (성공 0, 실패 1)
        """
        parsed_args = self.parser.parse_args(args)
        setup_logging("DEBUG" if parsed_args.verbose else None, log_dir=None)

        handlers = {
            "keywords": self._run_keywords,
            "stopwords": self._run_stopwords,
            "models": self._run_models,
            "generate": self._run_generate,
        }
        try:
            handlers[parsed_args.command](parsed_args)
            return 0
        except PubMedInsightError as e:
            logger.error(e.message)
            return 1
        except (OSError, ValueError) as e:
            logger.error(f"입력 처리 실패: {e}")
            return 1

    @staticmethod
    def _load_articles(path: str) -> List[Any]:
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("articles", [])
        if not isinstance(data, list):
            raise ValueError("기사 목록은 JSON 배열이어야 합니다")
        return data

    def _run_keywords(self, args: argparse.Namespace) -> None:
        articles = self._load_articles(args.articles)
        engine = TFIDFEngine(cache_max_size=config.get_tfidf_cache_size())
        if args.add_stopword:
            engine.add_stopwords(args.add_stopword)
        if args.remove_stopword:
            engine.remove_stopwords(args.remove_stopword)
        service = KeywordExtractionService(engine)
        report = service.extract_from_articles(articles, {
            "min_word_length": args.min_word_length,
            "max_word_frequency": args.max_word_frequency,
            "max_document_frequency": args.max_document_frequency,
            "top_percentage": args.top_percentage,
            "language": args.language,
        })

        if args.json:
            print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
            return

        stats = report.stats
        print(f"문서 {stats.total_documents}개, 어휘 {stats.vocabulary_size}개, "
              f"문서당 평균 {stats.average_words_per_document:.1f}단어")
        print(f"{'순위':>4}  {'키워드':<24}{'TF-IDF':>10}{'빈도':>6}{'문서수':>6}")
        for rank, keyword in enumerate(report.keywords, start=1):
            print(f"{rank:>4}  {keyword.word:<24}{keyword.tfidf:>10.4f}{keyword.frequency:>6}{keyword.document_count:>6}")

    def _run_stopwords(self, args: argparse.Namespace) -> None:
        engine = TFIDFEngine(cache_max_size=config.get_tfidf_cache_size())
        if args.add:
            engine.add_stopwords(args.add)
        if args.remove:
            engine.remove_stopwords(args.remove)
        words = engine.get_stopwords()
        print(f"불용어 {len(words)}개")
        print(" ".join(words))

    def _run_models(self, args: argparse.Namespace) -> None:
        manager = create_default_manager()
        if args.test:
            asyncio.run(self._test_all(manager))

        for status in manager.get_all_model_statuses():
            cfg = manager.get_model_config(status.name, masked=True)
            state = "사용 가능" if status.is_available else "사용 불가"
            latency = f"{status.latency:.0f}ms" if status.latency is not None else "-"
            print(f"{status.name:<10} {state:<6} 모델={cfg.model} 키={cfg.api_key or '-'} 지연={latency}"
                  + (f" 오류={status.error}" if status.error else ""))

    @staticmethod
    async def _test_all(manager) -> None:
        for name in manager.get_registered_models():
            await manager.test_model_connection(name)

    def _run_generate(self, args: argparse.Namespace) -> None:
        manager = create_default_manager()
        options = {"max_tokens": args.max_tokens, "temperature": args.temperature}
        result = asyncio.run(manager.generate_text(
            args.prompt,
            {k: v for k, v in options.items() if v is not None},
            preferred_model=args.model,
        ))
        print(result.text)
        logger.info(f"토큰 {result.usage.total_tokens}개, 예상 비용 ${result.cost:.6f}")


def main(argv: Optional[List[str]] = None) -> int:
    return PubMedInsightCLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
