"""
프로젝트 공통 예외 계층.

모든 예외는 사용자에게 그대로 보여줄 수 있는 `message`를 가지며,
스택 트레이스나 내부 식별자를 주 메시지로 노출하지 않습니다.
"""

from typing import Optional


class PubMedInsightError(Exception):
    """모든 도메인 예외의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(PubMedInsightError):
    """잘못된 설정 (API 키 누락, 옵션 값 오류 등). 재시도 대상이 아닙니다."""


class AIServiceError(PubMedInsightError):
    """AI 서비스 계층에서 발생하는 오류의 기본 클래스."""


class ProviderError(AIServiceError):
    """프로바이더 호출 실패 (네트워크, 인증, 한도 초과, 비정상 응답).

    Attributes:
        provider (str): 실패한 프로바이더 이름.
        status_code (Optional[int]): HTTP 상태 코드 (알 수 있는 경우).
    """

    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ModelUnavailableError(AIServiceError):
    """등록되지 않았거나 현재 사용할 수 없는 모델을 요청한 경우."""

    def __init__(self, message: str, model_name: str = ""):
        super().__init__(message)
        self.model_name = model_name
