# tests/test_config.py
"""
config.py 모듈 단위 테스트
"""
import os
from unittest.mock import patch

import pytest

from pubmed_insight.config import Config


@patch.dict(os.environ, {}, clear=True)
class TestConfig:
    """Config 클래스의 다양한 시나리오를 테스트합니다."""

    def test_get_keys_with_valid_values(self):
        """환경 변수가 올바르게 설정되었을 때 키를 잘 반환하는지 테스트"""
        with patch.dict(os.environ, {
            "OPENAI_API_KEY": "sk-real-openai",
            "ANTHROPIC_API_KEY": "sk-ant-real",
            "GEMINI_API_KEY": "gemini-real-key",
            "DEEPSEEK_API_KEY": "sk-deepseek",
        }):
            with patch('pubmed_insight.config.load_dotenv', return_value=True):
                cfg = Config()
                assert cfg.get_openai_api_key() == "sk-real-openai"
                assert cfg.get_claude_api_key() == "sk-ant-real"
                assert cfg.get_gemini_api_key() == "gemini-real-key"
                assert cfg.get_deepseek_api_key() == "sk-deepseek"

    @pytest.mark.parametrize("value", ["your_key_here", "your_deepseek_api_key_here", "", "   "])
    def test_get_keys_return_none_for_placeholder(self, value):
        """API 키가 비어 있거나 플레이스홀더 값일 때 None을 반환하는지 테스트"""
        with patch.dict(os.environ, {"DEEPSEEK_API_KEY": value}):
            with patch('pubmed_insight.config.load_dotenv', return_value=True):
                cfg = Config()
                assert cfg.get_deepseek_api_key() is None

    def test_unknown_provider_has_no_key(self):
        with patch('pubmed_insight.config.load_dotenv', return_value=True):
            assert Config().get_api_key('unknown') is None

    @patch('pubmed_insight.config.load_dotenv', return_value=False)
    @patch('pubmed_insight.config.Path.exists', return_value=False)
    @patch('builtins.open')
    def test_creates_sample_when_no_env_file(self, mock_open, mock_path_exists, mock_load_dotenv):
        """ .env 파일이 없을 때 샘플 파일을 생성하는지 테스트"""
        Config()
        mock_open.assert_called_once()
        assert '.env.example' in str(mock_open.call_args[0][0])

    @patch('pubmed_insight.config.load_dotenv', return_value=False)
    @patch('pubmed_insight.config.Path.exists', return_value=True)
    @patch('builtins.open')
    def test_does_not_overwrite_existing_sample(self, mock_open, mock_path_exists, mock_load_dotenv):
        Config()
        mock_open.assert_not_called()

    @pytest.mark.parametrize("env_value,expected", [
        ('true', True), ('True', True), ('false', False), ('', False), (None, False)
    ])
    def test_is_development_mode(self, env_value, expected):
        """is_development_mode가 환경 변수 값을 올바르게 파싱하는지 테스트"""
        env_dict = {"DEVELOPMENT_MODE": env_value} if env_value is not None else {}
        with patch.dict(os.environ, env_dict, clear=True):
            with patch('pubmed_insight.config.load_dotenv', return_value=True):
                cfg = Config()
                assert cfg.is_development_mode() is expected

    def test_defaults(self):
        """환경 변수가 없을 때 기본값을 반환하는지 테스트"""
        with patch('pubmed_insight.config.load_dotenv', return_value=True):
            cfg = Config()
            assert cfg.get_log_level() == "INFO"
            assert cfg.get_cache_timeout() == 300.0
            assert cfg.is_caching_enabled() is True
            assert cfg.get_max_retry_count() == 3
            assert cfg.get_retry_delay() == 1.0
            assert cfg.get_request_timeout() == 60.0
            assert cfg.get_tfidf_cache_size() == 100
            assert cfg.get_deepseek_base_url() == "https://api.deepseek.com"
            assert cfg.get_base_url('openai') is None

    @pytest.mark.parametrize("provider,expected", [
        ('openai', 'gpt-3.5-turbo'),
        ('claude', 'claude-3-haiku-20240307'),
        ('gemini', 'gemini-1.5-flash'),
        ('deepseek', 'deepseek-chat'),
    ])
    def test_default_model_names(self, provider, expected):
        with patch('pubmed_insight.config.load_dotenv', return_value=True):
            assert Config().get_model_name(provider) == expected

    def test_overrides_from_environment(self):
        with patch.dict(os.environ, {
            "OPENAI_MODEL": "gpt-4o",
            "DEEPSEEK_BASE_URL": "https://proxy.example.com",
            "MAX_RETRY_COUNT": "5",
            "RETRY_DELAY": "0.5",
            "AI_CACHE_ENABLED": "false",
            "LOG_LEVEL": "debug",
        }):
            with patch('pubmed_insight.config.load_dotenv', return_value=True):
                cfg = Config()
                assert cfg.get_model_name('openai') == "gpt-4o"
                assert cfg.get_deepseek_base_url() == "https://proxy.example.com"
                assert cfg.get_max_retry_count() == 5
                assert cfg.get_retry_delay() == 0.5
                assert cfg.is_caching_enabled() is False
                assert cfg.get_log_level() == "DEBUG"

    def test_invalid_numbers_fall_back_to_defaults(self):
        """숫자 형식이 잘못된 값은 기본값으로 대체되는지 테스트"""
        with patch.dict(os.environ, {"MAX_RETRY_COUNT": "three", "AI_CACHE_TIMEOUT": "soon"}):
            with patch('pubmed_insight.config.load_dotenv', return_value=True):
                cfg = Config()
                assert cfg.get_max_retry_count() == 3
                assert cfg.get_cache_timeout() == 300.0
