"""
ai/analysis.py 프롬프트 생성 및 응답 파싱 테스트.
"""

import pytest

from pubmed_insight.ai.analysis import (
    build_analysis_prompt,
    extract_list_items,
    extract_sections,
    extract_tags,
    get_analysis_type_text,
    parse_analysis_result,
)
from pubmed_insight.ai.models import AnalysisItem, AnalysisOptions

from conftest import SAMPLE_ANALYSIS_TEXT


@pytest.fixture
def items():
    return [
        AnalysisItem(id="101", title="PD-1 blockade in melanoma: a randomized controlled trial",
                     abstract="Overall survival improved.", authors=["Kim J", "Lee S"],
                     journal="Lancet", year="2023"),
        AnalysisItem(id="102", title="Microbiome and immunotherapy response", abstract=""),
    ]


class TestPrompt:
    """build_analysis_prompt 테스트."""

    def test_chinese_prompt(self, items):
        prompt = build_analysis_prompt(items, AnalysisOptions())

        assert prompt.startswith("请对以下2篇文献进行综合性分析：")
        assert "文献1：" in prompt
        assert "标题：PD-1 blockade in melanoma" in prompt
        assert "作者：Kim J, Lee S" in prompt
        assert "期刊：Lancet" in prompt
        assert "年份：2023" in prompt
        for header in ("## 总体概述", "## 关键发现", "## 研究建议", "## 详细分析"):
            assert header in prompt

    def test_missing_fields_are_omitted(self, items):
        prompt = build_analysis_prompt(items[1:], AnalysisOptions())
        assert "摘要：" not in prompt
        assert "作者：" not in prompt

    def test_english_prompt(self, items):
        prompt = build_analysis_prompt(items, AnalysisOptions(language="en", analysis_type="methodology"))

        assert prompt.startswith("Please conduct a methodology analysis of the following 2 literature(s):")
        assert "Authors: Kim J, Lee S" in prompt
        assert "## Key Findings" in prompt
        assert "总体概述" not in prompt

    @pytest.mark.parametrize("language", ["zh", "zh-CN", "ZH-TW"])
    def test_chinese_variants_use_chinese_prompt(self, items, language):
        prompt = build_analysis_prompt(items, AnalysisOptions(language=language))
        assert "## 总体概述" in prompt

    def test_custom_prompt_is_appended(self, items):
        zh = build_analysis_prompt(items, AnalysisOptions(custom_prompt=" 重点关注安全性 "))
        en = build_analysis_prompt(items, AnalysisOptions(language="en", custom_prompt="Focus on safety"))

        assert zh.rstrip().endswith("附加要求：重点关注安全性")
        assert en.rstrip().endswith("Additional requirements: Focus on safety")

    @pytest.mark.parametrize("analysis_type,language,expected", [
        ("comprehensive", "zh", "综合性"),
        ("results", "en", "results-focused"),
        ("trends", "zh-CN", "趋势"),
        ("unknown", "zh", "综合性"),
        ("unknown", "en", "comprehensive"),
    ])
    def test_analysis_type_text(self, analysis_type, language, expected):
        assert get_analysis_type_text(analysis_type, language) == expected


class TestSections:
    """섹션 파싱 테스트."""

    def test_chinese_sections(self):
        sections = extract_sections(SAMPLE_ANALYSIS_TEXT, "zh")
        assert sections["summary"] == "两篇文献都关注肿瘤免疫治疗。"
        assert set(sections) == {"summary", "key_findings", "research_suggestions", "detailed_analysis"}

    def test_falls_back_to_other_language_headers(self):
        text = "## Overall Summary\nAll good.\n\n## Key Findings\n- one\n- two\n"
        sections = extract_sections(text, "zh")
        assert sections["summary"] == "All good."
        assert "one" in sections["key_findings"]

    def test_headers_are_case_insensitive(self):
        sections = extract_sections("## overall summary\nlower case header\n", "en")
        assert sections["summary"] == "lower case header"

    def test_unstructured_text_becomes_summary(self):
        assert extract_sections("  free text answer  ", "en") == {"summary": "free text answer"}


class TestListItemsAndTags:

    def test_list_markers_removed(self):
        text = "1. first\n- second\n* third\n• fourth\n\n# heading\n2. fifth\n3. sixth"
        assert extract_list_items(text) == ["first", "second", "third", "fourth", "fifth"]

    def test_list_limit(self):
        assert extract_list_items("a\nb\nc", limit=2) == ["a", "b"]

    def test_tags_follow_vocabulary_order(self):
        text = "A systematic review and meta-analysis of RCT and cohort study data"
        assert extract_tags(text) == ["review", "meta-analysis", "RCT"]

    def test_chinese_tags(self):
        assert extract_tags("一项多中心随机对照试验") == ["随机对照试验"]

    def test_no_tags(self):
        assert extract_tags("") == []


class TestParseAnalysisResult:

    def test_structured_response(self, items):
        parsed = parse_analysis_result(SAMPLE_ANALYSIS_TEXT, items, AnalysisOptions())

        assert parsed["key_findings"] == ["PD-1 抑制剂显著延长生存期", "联合治疗提高了应答率"]
        assert parsed["research_suggestions"] == ["扩大样本量", "开展长期随访"]
        assert len(parsed["analyses"]) == 2
        first = parsed["analyses"][0]
        assert first.id == "101"
        assert first.analysis == "文献1为随机对照试验，文献2为队列研究。"
        assert first.tags == []

    def test_fallbacks_when_sections_missing(self, items):
        parsed = parse_analysis_result("## Key Findings\n- only findings\n", items, AnalysisOptions(language="en"))

        assert parsed["summary"] == "Analysis completed"
        assert parsed["research_suggestions"] == []
        assert [a.analysis for a in parsed["analyses"]] == [
            "Analysis result of literature 1",
            "Analysis result of literature 2",
        ]

    def test_chinese_fallbacks(self, items):
        parsed = parse_analysis_result("## 关键发现\n- 发现\n", items, AnalysisOptions())
        assert parsed["summary"] == "分析完成"
        assert parsed["analyses"][1].analysis == "文献2的分析结果"


class TestAnalysisItem:

    def test_from_dict_accepts_pubmed_record(self):
        item = AnalysisItem.from_dict({
            "pmid": 12345,
            "title": "Title",
            "publicationDate": "2021-05-01",
            "authors": ["A", "B"],
            "meshTerms": ["ignored"],
        })
        assert item.id == "12345"
        assert item.year == "2021"
        assert item.authors_text() == "A, B"
