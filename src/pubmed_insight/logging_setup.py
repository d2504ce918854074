"""
loguru 로깅 설정 모듈.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from pubmed_insight.config import config

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = "logs") -> None:
    """콘솔 및 파일 로그 싱크를 설정합니다.

    Args:
        level: 로그 레벨. None이면 config의 LOG_LEVEL 값을 사용합니다.
        log_dir: 로그 파일 디렉토리. None이면 파일 로그를 남기지 않습니다.
    """
    level = (level or config.get_log_level()).upper()
    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logger.add(f"{log_dir}/app.log", format=FILE_FORMAT, level=level,
                   encoding="utf-8")
        logger.add(f"{log_dir}/error.log", format=FILE_FORMAT, level="ERROR",
                   encoding="utf-8")


def mask_api_key(api_key: Optional[str]) -> str:
    """API 키를 앞 8자만 남기고 가립니다."""
    if not api_key:
        return ""
    return f"{api_key[:8]}..."
