"""
Pull Request Data Models

Canonical pull request model evaluated by rules, and the raw GitHub
record shapes it is built from.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel


@dataclass(frozen=True)
class User:
    """GitHub 계정"""
    login: str


@dataclass(frozen=True)
class Author:
    """git 커밋 작성자 정보 (GitHub 계정과 별개)"""
    name: str
    email: str
    date: Optional[datetime]


@dataclass(frozen=True)
class Commit:
    """PR에 포함된 커밋"""
    sha: str
    message: str
    commit_author: Author
    committer: Author
    author: User
    committed_by: User


@dataclass(frozen=True)
class Comment:
    """PR 코멘트"""
    author: User
    body: str
    created_at: datetime


@dataclass(frozen=True)
class PullRequest:
    """규칙 평가에 사용되는 Pull Request 전체"""
    author: User
    title: str
    body: str
    commits: Tuple[Commit, ...] = ()
    comments: Tuple[Comment, ...] = ()


class Permission(str, Enum):
    """Collaborator permission level on a repository."""
    ADMIN = "admin"
    WRITE = "write"
    READ = "read"
    NONE = "none"


# Raw GitHub API records
class RawUser(BaseModel):
    login: str = ""


class RawPullRequest(BaseModel):
    """GET /repos/{owner}/{repo}/pulls/{number}"""
    user: Optional[RawUser] = None
    title: Optional[str] = None
    body: Optional[str] = None


class RawAuthor(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    date: Optional[datetime] = None


class RawCommitBody(BaseModel):
    author: Optional[RawAuthor] = None
    committer: Optional[RawAuthor] = None
    message: Optional[str] = None


class RawCommit(BaseModel):
    """GET /repos/{owner}/{repo}/pulls/{number}/commits"""
    sha: str
    commit: RawCommitBody
    author: Optional[RawUser] = None
    committer: Optional[RawUser] = None


class RawComment(BaseModel):
    """GET /repos/{owner}/{repo}/issues/{number}/comments"""
    user: Optional[RawUser] = None
    body: Optional[str] = None
    created_at: datetime


class RawCollaboratorPermission(BaseModel):
    """GET /repos/{owner}/{repo}/collaborators/{login}/permission"""
    permission: Permission
