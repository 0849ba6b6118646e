"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication.
Provides the record fetches a validation run needs: pull request metadata,
commits, issue comments, and collaborator permissions.
"""

import time
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime
import pydantic
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import FetchError, FetchErrorKind, RateLimitExceeded
from ..models.pull_request import Permission, RawCollaboratorPermission


logger = logging.getLogger(__name__)


class GitHubClient:
    """
    GitHub API client with authentication, rate limiting, and error handling.

    Every failure surfaces as a FetchError whose kind tells the caller
    whether the record is missing, the quota is exhausted, the transport
    failed, or the response could not be decoded.
    """

    PER_PAGE = 100

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout_seconds: int = 30,
        max_retries: int = 3,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout_seconds: Per-request timeout
            max_retries: Transport-level retries for 5xx responses
        """
        if not token:
            raise ValueError("GitHub token is required")

        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.session = self._create_session()
        self.rate_limit_remaining: Optional[int] = None
        self.rate_limit_reset = datetime.now()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        # Rate limit responses are surfaced to the caller, not retried
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'Tailor/1.0'
        })

        return session

    def _check_rate_limit(self) -> None:
        """Fail fast while the rate limit is known to be exhausted."""
        if self.rate_limit_remaining == 0 and datetime.now() < self.rate_limit_reset:
            wait_time = (self.rate_limit_reset - datetime.now()).total_seconds()
            logger.warning(f"Rate limit exhausted, resets in {wait_time:.1f}s")
            raise RateLimitExceeded(self.rate_limit_reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _is_rate_limited(self, response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            FetchError: For API and transport errors
            RateLimitExceeded: When rate limit is exceeded
        """
        self._check_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout_seconds)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise FetchError(f"Request failed: {str(e)}", kind=FetchErrorKind.TRANSPORT) from e

        self._update_rate_limit(response)

        if self._is_rate_limited(response):
            reset_time = datetime.fromtimestamp(
                int(response.headers.get('X-RateLimit-Reset', time.time() + 3600))
            )
            raise RateLimitExceeded(reset_time)

        if response.status_code == 404:
            raise FetchError(
                f"Not found: {endpoint}",
                kind=FetchErrorKind.NOT_FOUND,
                status_code=404,
            )

        if not response.ok:
            raise FetchError(
                f"GitHub API error: {response.status_code} - {self._error_message(response)}",
                kind=FetchErrorKind.TRANSPORT,
                status_code=response.status_code,
            )

        return response

    def _error_message(self, response: requests.Response) -> str:
        try:
            error_data = response.json() if response.content else {}
        except ValueError:
            return 'Unknown error'
        if isinstance(error_data, dict):
            return error_data.get('message', 'Unknown error')
        return 'Unknown error'

    def _get_json(self, endpoint: str, **kwargs) -> Any:
        response = self._make_request('GET', endpoint, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                f"Could not decode response from {endpoint}: {e}",
                kind=FetchErrorKind.DECODE,
                status_code=response.status_code,
            ) from e

    def _get_paginated(self, endpoint: str) -> List[Dict]:
        """Collect every page of a list endpoint, preserving API order."""
        items = []
        page = 1

        while True:
            page_items = self._get_json(
                endpoint,
                params={'page': page, 'per_page': self.PER_PAGE}
            )
            if not isinstance(page_items, list):
                raise FetchError(
                    f"Expected a list from {endpoint}, got {type(page_items).__name__}",
                    kind=FetchErrorKind.DECODE,
                )
            if not page_items:
                break

            items.extend(page_items)

            if len(page_items) < self.PER_PAGE:
                break

            page += 1

        return items

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> Dict:
        """
        Get pull request information.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Pull request data
        """
        logger.info(f"Fetching PR {owner}/{repo}#{pr_number}")

        data = self._get_json(f'/repos/{owner}/{repo}/pulls/{pr_number}')
        if not isinstance(data, dict):
            raise FetchError(
                f"Expected an object for {owner}/{repo}#{pr_number}",
                kind=FetchErrorKind.DECODE,
            )
        return data

    def get_pull_request_commits(self, owner: str, repo: str, pr_number: int) -> List[Dict]:
        """
        Get commits of a pull request, oldest first.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            List of commit data
        """
        logger.info(f"Fetching PR commits for {owner}/{repo}#{pr_number}")

        commits = self._get_paginated(f'/repos/{owner}/{repo}/pulls/{pr_number}/commits')
        logger.info(f"Found {len(commits)} commits")
        return commits

    def get_pull_request_comments(self, owner: str, repo: str, pr_number: int) -> List[Dict]:
        """
        Get conversation comments of a pull request in chronological order.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            List of comment data
        """
        logger.info(f"Fetching PR comments for {owner}/{repo}#{pr_number}")

        comments = self._get_paginated(f'/repos/{owner}/{repo}/issues/{pr_number}/comments')
        logger.info(f"Found {len(comments)} comments")
        return comments

    def get_collaborator_permission(self, owner: str, repo: str, login: str) -> Permission:
        """
        Get the permission level a user holds on a repository.

        Args:
            owner: Repository owner
            repo: Repository name
            login: GitHub login of the user

        Returns:
            Permission level
        """
        logger.debug(f"Fetching permission of {login} on {owner}/{repo}")

        data = self._get_json(f'/repos/{owner}/{repo}/collaborators/{login}/permission')
        try:
            return RawCollaboratorPermission.model_validate(data).permission
        except pydantic.ValidationError as e:
            raise FetchError(
                f"Could not decode collaborator permission of {login}: {e}",
                kind=FetchErrorKind.DECODE,
            ) from e
