"""
GitHub Integration Layer

This module provides GitHub API integration for pull request, commit,
comment and collaborator permission retrieval.
"""

from .client import GitHubClient
from .parser import PullRequestParser

__all__ = ['GitHubClient', 'PullRequestParser']
