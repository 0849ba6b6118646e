"""
Main Tailor API

Orchestrates a validation run: fetch the pull request records, build the
canonical model, resolve exemptions, and evaluate the configured rules.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import partial
from typing import Dict, List, Optional

from .config import AppConfig, load_repositories
from .errors import ValidationError, UnknownRepositoryError
from .github.client import GitHubClient
from .github.parser import PullRequestParser
from .models.pull_request import PullRequest
from .models.rule import PullRequestJob, RepoConfig
from .validation.evaluator import ExpressionCapability, evaluate_rules
from .validation.exemptions import resolve_exemptions
from .validation.expressions import evaluate_expression


logger = logging.getLogger(__name__)


def fetch_pull_request(
    job: PullRequestJob,
    client: GitHubClient,
    parser: Optional[PullRequestParser] = None,
    max_workers: int = 3,
) -> PullRequest:
    """
    Fetch the PR, its commits and its comments, and build the model.

    The three reads run concurrently. If any fails, the first error in
    request order is raised and no model is built.
    """
    parser = parser or PullRequestParser()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(fetch, job.owner, job.repo, job.number)
            for fetch in (
                client.get_pull_request,
                client.get_pull_request_commits,
                client.get_pull_request_comments,
            )
        ]
        pr_data, commits_data, comments_data = [future.result() for future in futures]

    return parser.build(pr_data, commits_data, comments_data)


def validate_pull_request(
    job: PullRequestJob,
    client: GitHubClient,
    repo_config: RepoConfig,
    parser: Optional[PullRequestParser] = None,
    evaluate: ExpressionCapability = evaluate_expression,
    max_workers: int = 3,
) -> List[str]:
    """
    Validate a pull request against a repository's rules.

    Args:
        job: Pull request to validate
        client: GitHub client used for all reads
        repo_config: Rules of the job's repository
        parser: Model builder
        evaluate: Expression capability
        max_workers: Bound on concurrent GitHub reads

    Returns:
        Failure messages in configured rule order; empty when the PR passes

    Raises:
        FetchError: A record could not be fetched
        AuthorityCheckError: A disable directive could not be verified
        ExpressionError: A rule expression is broken
    """
    repository = job.repository

    try:
        pull_request = fetch_pull_request(job, client, parser, max_workers)

        exemptions = resolve_exemptions(
            repository,
            pull_request.comments,
            partial(client.get_collaborator_permission, job.owner, job.repo),
            max_workers=max_workers,
        )

        return evaluate_rules(
            repo_config.rules,
            exemptions,
            pull_request,
            repository,
            evaluate=evaluate,
        )
    except ValidationError as e:
        if e.repository is None:
            e.repository = repository
        raise


class TailorAPI:
    """
    Main Tailor API interface.

    Holds the GitHub client and the loaded repository rules, and runs one
    validation per job.
    """

    def __init__(
        self,
        config: AppConfig,
        repositories: Dict[str, RepoConfig],
        client: Optional[GitHubClient] = None,
    ):
        """
        Initialize Tailor API.

        Args:
            config: Application configuration
            repositories: Rules keyed by "owner/repo"
            client: Optional GitHub client (built from config otherwise)
        """
        self.config = config
        self.repositories = repositories
        self.client = client or GitHubClient(
            config.github.token,
            base_url=config.github.api_base_url,
            timeout_seconds=config.github.timeout_seconds,
            max_retries=config.github.max_retries,
        )
        self.parser = PullRequestParser()

        logger.info(f"Tailor API initialized with {len(repositories)} repositories")

    @classmethod
    def from_config(cls, config: AppConfig) -> "TailorAPI":
        """Build the API with rules loaded from the configured rules file."""
        return cls(config, load_repositories(config.validation.rules_path))

    def get_repo_config(self, job: PullRequestJob) -> RepoConfig:
        repo_config = self.repositories.get(job.repository)
        if repo_config is None:
            raise UnknownRepositoryError(
                f"No rules configured for {job.repository}",
                repository=job.repository,
            )
        return repo_config

    def validate(self, job: PullRequestJob) -> List[str]:
        """
        Validate a pull request.

        Args:
            job: Pull request to validate

        Returns:
            Failure messages; empty when every rule passes
        """
        start_time = datetime.now()
        logger.info(f"Starting validation of {job.repository}#{job.number}")

        try:
            failures = validate_pull_request(
                job,
                self.client,
                self.get_repo_config(job),
                parser=self.parser,
                max_workers=self.config.validation.max_workers,
            )
        except ValidationError as e:
            logger.error(f"Validation of {job.repository}#{job.number} failed: {e}")
            raise

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Validation of {job.repository}#{job.number} completed: "
            f"{len(failures)} failures ({processing_time:.2f}s)"
        )
        return failures
