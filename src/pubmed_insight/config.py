"""
설정 관리 모듈.

이 모듈은 .env 파일에서 환경 변수를 로드하고,
프로젝트 전반에서 사용될 설정 값들에 대한 접근자(getter)를 제공합니다.
AI 프로바이더 API 키, 모델 이름, 캐시/재시도 정책 등을 관리합니다.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

# 프로바이더별 기본 모델
DEFAULT_MODELS = {
    'openai': 'gpt-3.5-turbo',
    'claude': 'claude-3-haiku-20240307',
    'gemini': 'gemini-1.5-flash',
    'deepseek': 'deepseek-chat',
}

# 프로바이더별 API 키 환경 변수 이름
API_KEY_ENV_NAMES = {
    'openai': 'OPENAI_API_KEY',
    'claude': 'ANTHROPIC_API_KEY',
    'gemini': 'GEMINI_API_KEY',
    'deepseek': 'DEEPSEEK_API_KEY',
}

_PLACEHOLDER_MARKERS = ('your_key_here', 'your_deepseek_api_key_here')


class Config:
    """설정 관리 클래스.

    .env 파일 로딩과 설정 값 조회를 담당합니다.
    이 클래스의 인스턴스인 `config`가 전역적으로 사용됩니다.
    """

    def __init__(self):
        """Config 인스턴스를 초기화하고 환경 설정을 수행합니다."""
        self._setup_environment()
        self._load_env_file()

    def _setup_environment(self):
        """프로젝트 루트 경로를 PROJECT_ROOT 환경 변수로 설정합니다."""
        try:
            # src/pubmed_insight/config.py 기준 세 단계 위가 프로젝트 루트
            project_root = Path(__file__).resolve().parents[2]
            os.environ.setdefault('PROJECT_ROOT', str(project_root))
        except Exception as e:
            logger.warning(f"환경 설정 중 오류 발생: {e}")

    def _load_env_file(self):
        """'.env' 파일을 찾아 환경 변수를 로드합니다. 파일이 없으면 샘플을 생성합니다."""
        project_root = Path(os.getenv('PROJECT_ROOT', Path.cwd()))
        env_path = project_root / '.env'
        if not load_dotenv(dotenv_path=env_path):
            logger.warning(".env 파일을 찾을 수 없어, .env.example 샘플 파일을 생성합니다.")
            self._create_sample_env_file(project_root)

    def _create_sample_env_file(self, project_root: Path):
        """사용자가 설정을 쉽게 할 수 있도록 .env.example 파일을 생성합니다."""
        sample_path = project_root / '.env.example'
        if sample_path.exists():
            return
        content = (
            "# AI Providers\n"
            "OPENAI_API_KEY=your_key_here\nANTHROPIC_API_KEY=your_key_here\n"
            "GEMINI_API_KEY=your_key_here\nDEEPSEEK_API_KEY=your_key_here\n"
            "DEEPSEEK_BASE_URL=https://api.deepseek.com\n\n"
            "# Settings\nDEVELOPMENT_MODE=false\nLOG_LEVEL=INFO\n"
            "AI_CACHE_TIMEOUT=300\nMAX_RETRY_COUNT=3\nRETRY_DELAY=1.0\n"
        )
        try:
            with open(sample_path, 'w', encoding='utf-8') as f:
                f.write(content)
            logger.info(f"샘플 설정 파일 생성됨: {sample_path}")
        except IOError as e:
            logger.error(f"샘플 파일 생성 실패: {e}")

    # --- 내부 헬퍼 ---
    @staticmethod
    def _get_int(name: str, default: int) -> int:
        try:
            return int(os.getenv(name, default))
        except (ValueError, TypeError):
            logger.warning(f"{name} 값이 잘못되어 기본값({default})을 사용합니다.")
            return default

    @staticmethod
    def _get_float(name: str, default: float) -> float:
        try:
            return float(os.getenv(name, default))
        except (ValueError, TypeError):
            logger.warning(f"{name} 값이 잘못되어 기본값({default})을 사용합니다.")
            return default

    # --- API 키 Getter ---
    def get_api_key(self, provider: str) -> Optional[str]:
        """프로바이더의 API 키를 반환합니다. 플레이스홀더 값은 None으로 처리합니다."""
        env_name = API_KEY_ENV_NAMES.get(provider)
        if env_name is None:
            return None
        api_key = os.getenv(env_name, '').strip()
        if not api_key or any(marker in api_key for marker in _PLACEHOLDER_MARKERS):
            return None
        return api_key

    def get_openai_api_key(self) -> Optional[str]:
        return self.get_api_key('openai')

    def get_claude_api_key(self) -> Optional[str]:
        return self.get_api_key('claude')

    def get_gemini_api_key(self) -> Optional[str]:
        return self.get_api_key('gemini')

    def get_deepseek_api_key(self) -> Optional[str]:
        return self.get_api_key('deepseek')

    # --- 모델 설정 Getter ---
    def get_model_name(self, provider: str) -> str:
        """프로바이더의 모델 이름을 반환합니다 (예: OPENAI_MODEL)."""
        return os.getenv(f'{provider.upper()}_MODEL', DEFAULT_MODELS.get(provider, ''))

    def get_base_url(self, provider: str) -> Optional[str]:
        """프로바이더의 엔드포인트 재정의 값을 반환합니다. 없으면 None."""
        return os.getenv(f'{provider.upper()}_BASE_URL') or None

    def get_deepseek_base_url(self) -> str:
        return self.get_base_url('deepseek') or 'https://api.deepseek.com'

    # --- 동작 설정 Getter ---
    def is_development_mode(self) -> bool:
        """개발 모드 활성화 여부를 반환합니다."""
        return os.getenv('DEVELOPMENT_MODE', 'false').lower() == 'true'

    def get_log_level(self) -> str:
        """로그 레벨을 반환합니다."""
        return os.getenv('LOG_LEVEL', 'INFO').upper()

    def get_cache_timeout(self) -> float:
        """AI 결과 캐시 유효 시간(초)을 반환합니다. 기본값은 300초."""
        return self._get_float('AI_CACHE_TIMEOUT', 300.0)

    def is_caching_enabled(self) -> bool:
        return os.getenv('AI_CACHE_ENABLED', 'true').lower() != 'false'

    def get_max_retry_count(self) -> int:
        """AI 호출 실패 시 최대 시도 횟수를 반환합니다."""
        return self._get_int('MAX_RETRY_COUNT', 3)

    def get_retry_delay(self) -> float:
        """재시도 사이의 고정 대기 시간(초)을 반환합니다."""
        return self._get_float('RETRY_DELAY', 1.0)

    def get_request_timeout(self) -> float:
        """프로바이더 HTTP 요청 타임아웃(초)을 반환합니다."""
        return self._get_float('AI_REQUEST_TIMEOUT', 60.0)

    def get_tfidf_cache_size(self) -> int:
        """TF-IDF 결과 캐시의 최대 항목 수를 반환합니다."""
        return self._get_int('TFIDF_CACHE_SIZE', 100)


# 전역 설정 인스턴스: 'from pubmed_insight.config import config'로 사용
config = Config()
