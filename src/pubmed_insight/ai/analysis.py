"""
배치 문헌 분석용 프롬프트 생성 및 응답 파싱 헬퍼.

모든 어댑터가 공유하며, 응답은 네 개의 '## 헤더' 섹션(전체 개요, 핵심 발견,
연구 제안, 상세 분석)으로 구성된다고 가정합니다.
"""

import re
from typing import Dict, List, Sequence

from .models import AnalysisItem, AnalysisOptions, ItemAnalysis

MAX_LIST_ITEMS = 5
MAX_TAGS = 3

ANALYSIS_TYPE_TEXT = {
    'comprehensive': {'zh': '综合性', 'en': 'comprehensive'},
    'methodology': {'zh': '方法学', 'en': 'methodology'},
    'results': {'zh': '结果导向', 'en': 'results-focused'},
    'trends': {'zh': '趋势', 'en': 'trend'},
    'summary': {'zh': '总结性', 'en': 'summary'},
    'keywords': {'zh': '关键词', 'en': 'keyword'},
    'research_suggestions': {'zh': '研究建议', 'en': 'research-suggestion'},
}

SECTION_HEADERS = {
    'zh': {
        'summary': '总体概述',
        'key_findings': '关键发现',
        'research_suggestions': '研究建议',
        'detailed_analysis': '详细分析',
    },
    'en': {
        'summary': 'Overall Summary',
        'key_findings': 'Key Findings',
        'research_suggestions': 'Research Suggestions',
        'detailed_analysis': 'Detailed Analysis',
    },
}

STUDY_TYPE_TAGS = (
    '临床研究', '基础研究', '综述', '荟萃分析', '随机对照试验',
    '队列研究', '病例对照', '横断面研究', '系统评价', '指南',
    'clinical study', 'basic research', 'review', 'meta-analysis', 'RCT',
    'cohort study', 'case-control', 'cross-sectional', 'systematic review', 'guideline',
)

_LIST_MARKER = re.compile(r'^[-*•]\s*')
_NUMBER_MARKER = re.compile(r'^\d+\.\s*')

_PROMPT_LABELS = {
    'zh': {
        'intro': '请对以下{count}篇文献进行{type}分析：',
        'item': '文献{index}：',
        'title': '标题：', 'abstract': '摘要：', 'authors': '作者：', 'journal': '期刊：', 'year': '年份：',
        'format': '请提供以下格式的分析结果：',
        'placeholders': {
            'summary': '[对所有文献的整体分析和总结]',
            'key_findings': '[列出3-5个最重要的发现，每个发现一行]',
            'research_suggestions': '[基于分析结果提出3-5个研究建议，每个建议一行]',
            'detailed_analysis': '[对每篇文献的详细分析]',
        },
        'extra': '附加要求：',
    },
    'en': {
        'intro': 'Please conduct a {type} analysis of the following {count} literature(s):',
        'item': 'Literature {index}:',
        'title': 'Title: ', 'abstract': 'Abstract: ', 'authors': 'Authors: ', 'journal': 'Journal: ', 'year': 'Year: ',
        'format': 'Please provide analysis results in the following format:',
        'placeholders': {
            'summary': '[Overall analysis and summary of all literature]',
            'key_findings': '[List 3-5 most important findings, one per line]',
            'research_suggestions': '[Provide 3-5 research suggestions based on analysis, one per line]',
            'detailed_analysis': '[Detailed analysis of each literature]',
        },
        'extra': 'Additional requirements: ',
    },
}


def _lang(options: AnalysisOptions) -> str:
    return 'zh' if options.is_chinese else 'en'


def get_analysis_type_text(analysis_type: str, language: str = 'zh') -> str:
    """분석 유형의 표시 문자열. 알 수 없는 유형은 comprehensive로 처리합니다."""
    lang = 'zh' if (language or '').lower().startswith('zh') else 'en'
    entry = ANALYSIS_TYPE_TEXT.get(analysis_type, ANALYSIS_TYPE_TEXT['comprehensive'])
    return entry[lang]


def build_analysis_prompt(items: Sequence[AnalysisItem], options: AnalysisOptions) -> str:
    """
    모든 문헌을 하나의 프롬프트로 합칩니다.

    Args:
        items: 분석 대상 문헌
        options: 언어, 분석 유형, 사용자 추가 지시(custom_prompt)

    Returns:
        str: 네 섹션 응답 형식을 요구하는 프롬프트
    """
    lang = _lang(options)
    labels = _PROMPT_LABELS[lang]
    type_text = get_analysis_type_text(options.analysis_type, lang)

    lines = [labels['intro'].format(count=len(items), type=type_text), '']
    for index, item in enumerate(items, start=1):
        lines.append(labels['item'].format(index=index))
        lines.append(f"{labels['title']}{item.title}")
        if item.abstract:
            lines.append(f"{labels['abstract']}{item.abstract}")
        authors = item.authors_text()
        if authors:
            lines.append(f"{labels['authors']}{authors}")
        if item.journal:
            lines.append(f"{labels['journal']}{item.journal}")
        if item.year:
            lines.append(f"{labels['year']}{item.year}")
        lines.append('')

    lines.append(labels['format'])
    headers = SECTION_HEADERS[lang]
    for key in ('summary', 'key_findings', 'research_suggestions', 'detailed_analysis'):
        lines.append(f"## {headers[key]}")
        lines.append(labels['placeholders'][key])
        lines.append('')

    if options.custom_prompt:
        lines.append(f"{labels['extra']}{options.custom_prompt.strip()}")

    return '\n'.join(lines).rstrip() + '\n'


def _match_sections(text: str, headers: Dict[str, str]) -> Dict[str, str]:
    sections = {}
    for key, header in headers.items():
        pattern = re.compile(rf'##\s*{re.escape(header)}\s*\n(.*?)(?=##|\Z)', re.S | re.I)
        match = pattern.search(text)
        if match:
            sections[key] = match.group(1).strip()
    return sections


def extract_sections(text: str, language: str = 'zh') -> Dict[str, str]:
    """
    응답 텍스트에서 섹션을 추출합니다.

    활성 언어의 헤더를 먼저 시도하고, 하나도 없으면 다른 언어의 헤더를 시도합니다.
    둘 다 실패하면 전체 텍스트를 summary로 사용합니다.
    """
    primary = 'zh' if (language or '').lower().startswith('zh') else 'en'
    secondary = 'en' if primary == 'zh' else 'zh'

    sections = _match_sections(text, SECTION_HEADERS[primary])
    if not sections:
        sections = _match_sections(text, SECTION_HEADERS[secondary])
    if not sections:
        sections = {'summary': text.strip()}
    return sections


def extract_list_items(text: str, limit: int = MAX_LIST_ITEMS) -> List[str]:
    """목록 기호(-, *, •, 1.)를 제거한 항목을 최대 limit개 반환합니다."""
    items = []
    for line in text.splitlines():
        cleaned = _NUMBER_MARKER.sub('', _LIST_MARKER.sub('', line.strip())).strip()
        if cleaned and not cleaned.startswith('#'):
            items.append(cleaned)
    return items[:limit]


def extract_tags(text: str, limit: int = MAX_TAGS) -> List[str]:
    """연구 유형 어휘와 대소문자 구분 없이 부분 일치하는 태그를 최대 limit개 반환합니다."""
    lowered = (text or '').lower()
    return [tag for tag in STUDY_TYPE_TAGS if tag.lower() in lowered][:limit]


def parse_analysis_result(text: str, items: Sequence[AnalysisItem], options: AnalysisOptions) -> Dict[str, object]:
    """응답 텍스트를 summary/key_findings/research_suggestions/analyses로 분해합니다."""
    chinese = options.is_chinese
    sections = extract_sections(text, options.language)

    detailed = sections.get('detailed_analysis')
    analyses = []
    for index, item in enumerate(items, start=1):
        fallback = f"文献{index}的分析结果" if chinese else f"Analysis result of literature {index}"
        analyses.append(ItemAnalysis(
            id=item.id,
            title=item.title,
            analysis=detailed or fallback,
            tags=extract_tags(f"{item.title} {item.abstract or ''}"),
        ))

    return {
        'summary': sections.get('summary') or ('分析完成' if chinese else 'Analysis completed'),
        'key_findings': extract_list_items(sections.get('key_findings', '')),
        'research_suggestions': extract_list_items(sections.get('research_suggestions', '')),
        'analyses': analyses,
    }
