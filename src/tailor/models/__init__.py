"""
Data Models

Tailor 시스템의 핵심 데이터 모델들
"""

from .pull_request import PullRequest, User, Author, Commit, Comment, Permission
from .rule import Rule, RepoConfig, PullRequestJob

__all__ = [
    "PullRequest",
    "User",
    "Author",
    "Commit",
    "Comment",
    "Permission",
    "Rule",
    "RepoConfig",
    "PullRequestJob",
]
