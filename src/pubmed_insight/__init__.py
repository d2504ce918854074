"""
PubMed Insight: 문헌 키워드 추출(TF-IDF)과 멀티 프로바이더 AI 분석 코어.
"""

__version__ = "0.1.0"
