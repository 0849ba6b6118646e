"""
Integration tests for the HTTP server.
"""

import pytest
from unittest.mock import Mock
from datetime import datetime

from tailor.api import TailorAPI
from tailor.config import AppConfig, GitHubConfig, LoggingConfig, ValidationConfig
from tailor.errors import FetchError, FetchErrorKind, RateLimitExceeded
from tailor.github.client import GitHubClient
from tailor.models.pull_request import Permission
from tailor.models.rule import RepoConfig, Rule
from tailor.server import create_app


@pytest.fixture
def client():
    github = Mock(spec=GitHubClient)
    github.get_pull_request.return_value = {'title': 'Add feature', 'body': '', 'user': {'login': 'author'}}
    github.get_pull_request_commits.return_value = []
    github.get_pull_request_comments.return_value = []
    github.get_collaborator_permission.return_value = Permission.ADMIN
    return github


RULES = [
    Rule(name="ci", description="needs commits", expression="commits.size > 0"),
    Rule(name="desc", description="needs body", expression='body != ""'),
]


def make_app(client, rules):
    config = AppConfig(
        github=GitHubConfig(token="ghp_test_token"),
        validation=ValidationConfig(),
        logging=LoggingConfig(),
    )
    repositories = {"coreos/tailor": RepoConfig(owner="coreos", repo="tailor", rules=list(rules))}
    app = create_app(TailorAPI(config, repositories, client=client))
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def app_client(client):
    return make_app(client, RULES)


JOB = {'owner': 'coreos', 'repo': 'tailor', 'number': 42}


class TestServer:
    """Integration tests for the Flask app."""

    def test_health(self, app_client):
        response = app_client.get('/api/v1/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'
        assert response.get_json()['repositories'] == 1

    def test_validate_failures(self, app_client):
        response = app_client.post('/api/v1/pulls/validate', json=JOB)

        assert response.status_code == 200
        assert response.get_json() == {
            'repository': 'coreos/tailor',
            'number': 42,
            'status': 'failed',
            'failures': ["Failed ci (needs commits)", "Failed desc (needs body)"],
        }

    def test_validate_with_exemption(self, app_client, client):
        client.get_pull_request.return_value['body'] = 'Details'
        client.get_pull_request_comments.return_value = [
            {'user': {'login': 'boss'}, 'body': 'tailor disable ci', 'created_at': '2017-06-02T08:30:00Z'},
        ]

        response = app_client.post('/api/v1/pulls/validate', json=JOB)

        assert response.get_json()['status'] == 'passed'
        assert response.get_json()['failures'] == []

    @pytest.mark.parametrize("body", [
        {'owner': 'coreos', 'repo': 'tailor'},
        {'owner': 'coreos', 'repo': 'tailor', 'number': 0},
        {'owner': 'coreos', 'repo': 'tailor', 'number': 'abc'},
    ])
    def test_invalid_job(self, app_client, body):
        response = app_client.post('/api/v1/pulls/validate', json=body)

        assert response.status_code == 400

    def test_non_json_body(self, app_client):
        response = app_client.post('/api/v1/pulls/validate', data='not json', content_type='text/plain')

        assert response.status_code == 400

    def test_unknown_repository(self, app_client):
        response = app_client.post('/api/v1/pulls/validate', json={'owner': 'coreos', 'repo': 'etcd', 'number': 1})

        assert response.status_code == 404
        assert response.get_json()['repository'] == 'coreos/etcd'

    def test_rate_limited(self, app_client, client):
        client.get_pull_request_commits.side_effect = RateLimitExceeded(datetime.now())

        response = app_client.post('/api/v1/pulls/validate', json=JOB)

        assert response.status_code == 503

    def test_pull_request_not_found(self, app_client, client):
        client.get_pull_request.side_effect = FetchError("Not found", kind=FetchErrorKind.NOT_FOUND)

        response = app_client.post('/api/v1/pulls/validate', json=JOB)

        assert response.status_code == 404

    def test_authority_check_failure(self, app_client, client):
        client.get_pull_request_comments.return_value = [
            {'user': {'login': 'boss'}, 'body': 'tailor disable ci', 'created_at': '2017-06-02T08:30:00Z'},
        ]
        client.get_collaborator_permission.side_effect = FetchError("boom", kind=FetchErrorKind.TRANSPORT)

        response = app_client.post('/api/v1/pulls/validate', json=JOB)

        assert response.status_code == 502
        assert response.get_json()['status'] == 'error'

    def test_broken_rule(self, client):
        app_client = make_app(client, [Rule(name="typo", description="broken", expression="comits.size > 0")])

        response = app_client.post('/api/v1/pulls/validate', json=JOB)

        assert response.status_code == 422
        assert response.get_json()['rule'] == 'typo'
        assert response.get_json()['repository'] == 'coreos/tailor'
