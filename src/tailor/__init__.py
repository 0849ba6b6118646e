"""
Tailor

GitHub Pull Request 정책 규칙 검증 시스템
"""

__version__ = "1.0.0"

from .api import TailorAPI, validate_pull_request

__all__ = ["TailorAPI", "validate_pull_request"]
