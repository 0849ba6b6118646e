"""
Configuration Management

시스템 설정 및 저장소 규칙 설정 관리
"""

import os
import yaml
from dataclasses import dataclass
from typing import Optional, Dict
from pathlib import Path
import logging

import pydantic

from .errors import ConfigurationError
from .models.rule import Rule, RepoConfig, RulesFile


logger = logging.getLogger(__name__)


@dataclass
class GitHubConfig:
    """GitHub API 설정"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30
    max_retries: int = 3


@dataclass
class ValidationConfig:
    """PR 검증 설정"""
    rules_path: str = "tailor.yaml"
    max_workers: int = 3


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    github: GitHubConfig
    validation: ValidationConfig
    logging: LoggingConfig
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """환경 변수에서 설정 로드"""
        return cls(
            github=GitHubConfig(
                token=os.getenv("GITHUB_TOKEN"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=int(os.getenv("GITHUB_TIMEOUT", "30")),
                max_retries=int(os.getenv("GITHUB_MAX_RETRIES", "3")),
            ),
            validation=ValidationConfig(
                rules_path=os.getenv("TAILOR_RULES", "tailor.yaml"),
                max_workers=int(os.getenv("TAILOR_MAX_WORKERS", "3")),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        try:
            return cls(
                github=GitHubConfig(**config_data.get('github', {})),
                validation=ValidationConfig(**config_data.get('validation', {})),
                logging=LoggingConfig(**config_data.get('logging', {})),
                debug=config_data.get('debug', False),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        # GitHub 토큰 필수 확인
        if not self.github.token:
            errors.append("GitHub token is required")

        if self.github.timeout_seconds <= 0:
            errors.append("GitHub timeout must be positive")

        if self.github.max_retries < 0:
            errors.append("GitHub max retries must not be negative")

        if self.validation.max_workers <= 0:
            errors.append("Max workers must be positive")

        # 로그 레벨 검증
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

def load_repositories(rules_path: str) -> Dict[str, RepoConfig]:
    """
    Load repository rule definitions from a YAML file.

    The file lists repositories with their ordered rules:

        repos:
          - owner: coreos
            repo: tailor
            rules:
              - name: ci
                description: needs commits
                expression: commits.size > 0

    Returns:
        RepoConfig keyed by "owner/repo"
    """
    rules_file = Path(rules_path)
    if not rules_file.exists():
        raise ConfigurationError(f"Rules file not found: {rules_path}")

    with open(rules_file, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {rules_path}: {e}") from e

    try:
        parsed = RulesFile.model_validate(data)
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"Invalid rules file {rules_path}: {e}") from e

    repositories = {}
    for definition in parsed.repos:
        repo_config = RepoConfig(
            owner=definition.owner,
            repo=definition.repo,
            rules=[
                Rule(name=rule.name, description=rule.description, expression=rule.expression)
                for rule in definition.rules
            ],
        )
        if repo_config.full_name in repositories:
            raise ConfigurationError(f"Repository configured twice: {repo_config.full_name}")
        repositories[repo_config.full_name] = repo_config

    logger.info(f"Loaded rules for {len(repositories)} repositories from {rules_path}")
    return repositories


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            root_logger = logging.getLogger()
            root_logger.addHandler(handler)
