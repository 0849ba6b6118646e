"""
Pull Request Parser

Turns raw GitHub API records into the canonical PullRequest model that
rules are evaluated against.
"""

import logging
from typing import Any, Dict, List, Optional

import pydantic

from ..errors import FetchError, FetchErrorKind
from ..models.pull_request import (
    PullRequest, User, Author, Commit, Comment,
    RawPullRequest, RawCommit, RawComment, RawUser, RawAuthor,
)


logger = logging.getLogger(__name__)


class PullRequestParser:
    """
    Parser for GitHub pull request records.

    Building is a pure transformation: absent lists become empty tuples and
    absent strings become empty strings, so rules never see None where a
    sequence or text is expected.
    """

    def build(
        self,
        pr_data: Optional[Dict],
        commits_data: Optional[List[Dict]],
        comments_data: Optional[List[Dict]],
    ) -> PullRequest:
        """
        Parse PR data, commits and comments into a PullRequest.

        Args:
            pr_data: PR information from GitHub API
            commits_data: Commit list from GitHub API
            comments_data: Issue comment list from GitHub API

        Returns:
            Canonical PullRequest

        Raises:
            FetchError: When a record does not have the expected shape
        """
        raw_pr = self._decode(RawPullRequest, pr_data or {}, "pull request")
        commits = tuple(
            self._parse_commit(self._decode(RawCommit, item, "commit"))
            for item in commits_data or []
        )
        comments = tuple(
            self._parse_comment(self._decode(RawComment, item, "comment"))
            for item in comments_data or []
        )

        pull_request = PullRequest(
            author=self._parse_user(raw_pr.user),
            title=raw_pr.title or "",
            body=raw_pr.body or "",
            commits=commits,
            comments=comments,
        )

        logger.debug(f"Built pull request model: {len(commits)} commits, {len(comments)} comments")
        return pull_request

    def _decode(self, model: type, data: Any, label: str):
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise FetchError(
                f"Malformed {label} record: {e}",
                kind=FetchErrorKind.DECODE,
            ) from e

    def _parse_user(self, raw_user: Optional[RawUser]) -> User:
        # Commits whose email is not linked to an account have no user
        if raw_user is None:
            return User(login="")
        return User(login=raw_user.login)

    def _parse_author(self, raw_author: Optional[RawAuthor]) -> Author:
        if raw_author is None:
            return Author(name="", email="", date=None)
        return Author(
            name=raw_author.name or "",
            email=raw_author.email or "",
            date=raw_author.date,
        )

    def _parse_commit(self, raw_commit: RawCommit) -> Commit:
        return Commit(
            sha=raw_commit.sha,
            message=raw_commit.commit.message or "",
            commit_author=self._parse_author(raw_commit.commit.author),
            committer=self._parse_author(raw_commit.commit.committer),
            author=self._parse_user(raw_commit.author),
            committed_by=self._parse_user(raw_commit.committer),
        )

    def _parse_comment(self, raw_comment: RawComment) -> Comment:
        return Comment(
            author=self._parse_user(raw_comment.user),
            body=raw_comment.body or "",
            created_at=raw_comment.created_at,
        )
