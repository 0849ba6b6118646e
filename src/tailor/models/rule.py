"""
Rule Data Models

정책 규칙, 저장소 설정, 검증 작업 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import List
from pydantic import BaseModel, validator


@dataclass(frozen=True)
class Rule:
    """이름, 설명, 불리언 표현식으로 구성된 정책 규칙"""
    name: str
    description: str
    expression: str

    def __post_init__(self):
        """데이터 검증"""
        if not self.name.strip():
            raise ValueError("Rule name cannot be empty")
        if not self.expression.strip():
            raise ValueError(f"Rule {self.name} has an empty expression")

    @property
    def failure_message(self) -> str:
        """규칙 실패 시 보고되는 메시지"""
        return f"Failed {self.name} ({self.description})"


@dataclass
class RepoConfig:
    """저장소별 규칙 설정"""
    owner: str
    repo: str
    rules: List[Rule] = field(default_factory=list)

    def __post_init__(self):
        """데이터 검증"""
        if not self.owner or not self.repo:
            raise ValueError("Repository owner and name are required")
        seen = set()
        for rule in self.rules:
            if rule.name in seen:
                raise ValueError(f"Duplicate rule name in {self.full_name}: {rule.name}")
            seen.add(rule.name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class PullRequestJob:
    """하나의 PR에 대한 검증 작업"""
    owner: str
    repo: str
    number: int

    def __post_init__(self):
        """데이터 검증"""
        if not self.owner or not self.repo:
            raise ValueError("Repository owner and name are required")
        if self.number <= 0:
            raise ValueError("PR number must be positive")

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"


# Pydantic models for rule files and API validation
class RuleDefinition(BaseModel):
    """규칙 파일의 개별 규칙"""
    name: str
    description: str = ""
    expression: str

    @validator('name', 'expression')
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('must not be blank')
        return v.strip()


class RepoDefinition(BaseModel):
    """규칙 파일의 저장소 항목"""
    owner: str
    repo: str
    rules: List[RuleDefinition] = []

    @validator('rules')
    def validate_unique_names(cls, v):
        names = [rule.name for rule in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f'Duplicate rule names: {", ".join(duplicates)}')
        return v


class RulesFile(BaseModel):
    """규칙 파일 전체"""
    repos: List[RepoDefinition] = []


class PullRequestJobRequest(BaseModel):
    """API 요청용 PullRequestJob 모델"""
    owner: str
    repo: str
    number: int

    @validator('owner', 'repo')
    def validate_identifier(cls, v):
        if not v.strip() or '/' in v:
            raise ValueError('Invalid repository identifier')
        return v.strip()

    @validator('number')
    def validate_number(cls, v):
        if v <= 0:
            raise ValueError('PR number must be positive')
        return v
