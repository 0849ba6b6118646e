"""
Unit tests for GitHub Integration Layer.

Tests: GitHubClient error mapping and pagination, PullRequestParser.
"""

import pytest
from unittest.mock import Mock
import requests
import time
from datetime import datetime, timedelta, timezone

from tailor.errors import FetchError, FetchErrorKind, RateLimitExceeded
from tailor.github.client import GitHubClient
from tailor.github.parser import PullRequestParser
from tailor.models.pull_request import Permission, User


def make_response(status_code=200, json_data=None, headers=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.headers = headers or {}
    response.content = b'{}' if json_data is not None else b''
    response.json.return_value = json_data
    return response


def make_client(*responses):
    client = GitHubClient("ghp_test_token_123456789")
    client.session.request = Mock(side_effect=list(responses))
    return client


COMMIT_DATA = {
    'sha': 'abc123',
    'commit': {
        'message': 'Fix bug',
        'author': {'name': 'Mona', 'email': 'mona@example.com', 'date': '2017-06-01T12:00:00Z'},
        'committer': {'name': 'GitHub', 'email': 'noreply@github.com', 'date': '2017-06-01T12:05:00Z'},
    },
    'author': {'login': 'mona'},
    'committer': {'login': 'web-flow'},
}

COMMENT_DATA = {
    'user': {'login': 'admin'},
    'body': 'tailor disable ci',
    'created_at': '2017-06-02T08:30:00Z',
}


class TestGitHubClient:
    """Unit tests for GitHubClient class."""

    def test_client_initialization(self):
        """Test GitHubClient initialization."""
        token = "ghp_test_token_123456789"
        client = GitHubClient(token)

        assert client.token == token
        assert client.base_url == "https://api.github.com"
        assert client.session.headers["Authorization"] == f"token {token}"
        assert client.session.headers["Accept"] == "application/vnd.github.v3+json"

    def test_client_initialization_validation(self):
        with pytest.raises(ValueError):
            GitHubClient("")

        with pytest.raises(ValueError):
            GitHubClient(None)

    def test_get_pull_request(self):
        """Test getting pull request information."""
        client = make_client(make_response(json_data={
            "number": 123,
            "title": "Test PR",
            "body": "Body",
            "user": {"login": "octocat"},
        }))

        result = client.get_pull_request("owner", "repo", 123)

        assert result["title"] == "Test PR"
        client.session.request.assert_called_once_with(
            'GET', 'https://api.github.com/repos/owner/repo/pulls/123', timeout=30
        )

    def test_get_pull_request_commits_paginates(self):
        """Test that list endpoints follow pages until a short page."""
        first_page = [dict(COMMIT_DATA, sha=f"sha{i}") for i in range(100)]
        second_page = [dict(COMMIT_DATA, sha="last")]
        client = make_client(make_response(json_data=first_page), make_response(json_data=second_page))

        commits = client.get_pull_request_commits("owner", "repo", 1)

        assert len(commits) == 101
        assert commits[0]["sha"] == "sha0"
        assert commits[-1]["sha"] == "last"
        assert client.session.request.call_count == 2
        _, kwargs = client.session.request.call_args
        assert kwargs["params"] == {'page': 2, 'per_page': 100}

    def test_get_pull_request_comments_stops_on_empty_page(self):
        first_page = [COMMENT_DATA] * 100
        client = make_client(make_response(json_data=first_page), make_response(json_data=[]))

        comments = client.get_pull_request_comments("owner", "repo", 1)

        assert len(comments) == 100
        assert client.session.request.call_args[0][1].endswith('/repos/owner/repo/issues/1/comments')

    def test_not_found(self):
        client = make_client(make_response(404, json_data={"message": "Not Found"}))

        with pytest.raises(FetchError) as exc_info:
            client.get_pull_request("owner", "repo", 9)

        assert exc_info.value.kind == FetchErrorKind.NOT_FOUND
        assert exc_info.value.status_code == 404

    def test_rate_limit_429(self):
        """Test rate limit handling."""
        client = make_client(make_response(429, headers={
            "X-RateLimit-Reset": str(int(time.time()) + 3600)
        }))

        with pytest.raises(RateLimitExceeded) as exc_info:
            client.get_pull_request_commits("owner", "repo", 1)

        assert exc_info.value.kind == FetchErrorKind.RATE_LIMITED

    def test_rate_limit_403_exhausted(self):
        client = make_client(make_response(403, json_data={"message": "API rate limit exceeded"}, headers={
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time()) + 3600),
        }))

        with pytest.raises(RateLimitExceeded):
            client.get_pull_request("owner", "repo", 1)

        assert client.rate_limit_remaining == 0

    def test_forbidden_is_transport_error(self):
        client = make_client(make_response(403, json_data={"message": "Forbidden"}, headers={
            "X-RateLimit-Remaining": "4999",
        }))

        with pytest.raises(FetchError) as exc_info:
            client.get_pull_request("owner", "repo", 1)

        assert exc_info.value.kind == FetchErrorKind.TRANSPORT
        assert exc_info.value.status_code == 403
        assert "Forbidden" in str(exc_info.value)

    def test_exhausted_rate_limit_fails_fast(self):
        client = make_client()
        client.rate_limit_remaining = 0
        client.rate_limit_reset = datetime.now() + timedelta(hours=1)

        with pytest.raises(RateLimitExceeded):
            client.get_pull_request("owner", "repo", 1)

        client.session.request.assert_not_called()

    def test_request_exception_is_transport_error(self):
        client = make_client(requests.ConnectionError("connection refused"))

        with pytest.raises(FetchError) as exc_info:
            client.get_pull_request("owner", "repo", 1)

        assert exc_info.value.kind == FetchErrorKind.TRANSPORT
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_invalid_json_is_decode_error(self):
        response = make_response(json_data={})
        response.json.side_effect = ValueError("Expecting value")
        client = make_client(response)

        with pytest.raises(FetchError) as exc_info:
            client.get_pull_request("owner", "repo", 1)

        assert exc_info.value.kind == FetchErrorKind.DECODE

    def test_list_endpoint_requires_list(self):
        client = make_client(make_response(json_data={"message": "unexpected"}))

        with pytest.raises(FetchError) as exc_info:
            client.get_pull_request_commits("owner", "repo", 1)

        assert exc_info.value.kind == FetchErrorKind.DECODE

    def test_get_collaborator_permission(self):
        client = make_client(make_response(json_data={"permission": "admin", "user": {"login": "boss"}}))

        assert client.get_collaborator_permission("owner", "repo", "boss") is Permission.ADMIN
        assert client.session.request.call_args[0][1].endswith(
            '/repos/owner/repo/collaborators/boss/permission'
        )

    def test_unknown_permission_is_decode_error(self):
        client = make_client(make_response(json_data={"permission": "superuser"}))

        with pytest.raises(FetchError) as exc_info:
            client.get_collaborator_permission("owner", "repo", "boss")

        assert exc_info.value.kind == FetchErrorKind.DECODE

    def test_rate_limit_headers_are_tracked(self):
        reset = int(time.time()) + 600
        client = make_client(make_response(json_data={}, headers={
            "X-RateLimit-Remaining": "4321",
            "X-RateLimit-Reset": str(reset),
        }))

        client.get_pull_request("owner", "repo", 1)

        assert client.rate_limit_remaining == 4321
        assert client.rate_limit_reset == datetime.fromtimestamp(reset)


class TestPullRequestParser:
    """Unit tests for PullRequestParser class."""

    def test_build(self):
        """Test building the canonical model from raw records."""
        parser = PullRequestParser()

        pull_request = parser.build(
            {"title": "Add feature", "body": "Details", "user": {"login": "octocat"}},
            [COMMIT_DATA],
            [COMMENT_DATA],
        )

        assert pull_request.author == User(login="octocat")
        assert pull_request.title == "Add feature"
        assert pull_request.body == "Details"

        commit = pull_request.commits[0]
        assert commit.sha == "abc123"
        assert commit.message == "Fix bug"
        assert commit.commit_author.email == "mona@example.com"
        assert commit.commit_author.date == datetime(2017, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert commit.committer.name == "GitHub"
        assert commit.author.login == "mona"
        assert commit.committed_by.login == "web-flow"

        comment = pull_request.comments[0]
        assert comment.author.login == "admin"
        assert comment.body == "tailor disable ci"
        assert comment.created_at == datetime(2017, 6, 2, 8, 30, tzinfo=timezone.utc)

    def test_build_treats_absence_as_empty(self):
        parser = PullRequestParser()

        pull_request = parser.build({"title": "No body", "body": None, "user": {"login": "octocat"}}, None, None)

        assert pull_request.body == ""
        assert pull_request.commits == ()
        assert pull_request.comments == ()

    def test_build_unlinked_commit_author(self):
        parser = PullRequestParser()
        commit_data = dict(COMMIT_DATA, author=None)

        pull_request = parser.build({"title": "T", "body": "", "user": {"login": "o"}}, [commit_data], [])

        assert pull_request.commits[0].author == User(login="")

    def test_build_preserves_comment_order(self):
        parser = PullRequestParser()
        comments = [
            dict(COMMENT_DATA, body=f"comment {i}", created_at=f"2017-06-0{i + 1}T00:00:00Z")
            for i in range(3)
        ]

        pull_request = parser.build({"title": "T", "body": "", "user": {"login": "o"}}, [], comments)

        assert [c.body for c in pull_request.comments] == ["comment 0", "comment 1", "comment 2"]

    def test_build_malformed_record(self):
        parser = PullRequestParser()

        with pytest.raises(FetchError) as exc_info:
            parser.build({"title": "T"}, [], [{"user": {"login": "x"}, "body": "no date"}])

        assert exc_info.value.kind == FetchErrorKind.DECODE
