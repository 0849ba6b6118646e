"""
Tailor HTTP Server

Flask application that accepts validation jobs and reports rule failures.
"""

import logging

import pydantic
from flask import Flask, request, jsonify

from . import __version__
from .api import TailorAPI
from .errors import (
    ValidationError, FetchError, FetchErrorKind, ExpressionError, UnknownRepositoryError,
)
from .models.rule import PullRequestJob, PullRequestJobRequest


logger = logging.getLogger(__name__)


def _error_status(error: ValidationError) -> int:
    if isinstance(error, UnknownRepositoryError):
        return 404
    if isinstance(error, ExpressionError):
        return 422
    if isinstance(error, FetchError):
        if error.kind == FetchErrorKind.NOT_FOUND:
            return 404
        if error.kind == FetchErrorKind.RATE_LIMITED:
            return 503
    return 502


def create_app(api: TailorAPI) -> Flask:
    """Create the Flask app serving the given API."""
    app = Flask(__name__)

    @app.route('/api/v1/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'service': 'tailor',
            'version': __version__,
            'repositories': len(api.repositories),
        })

    @app.route('/api/v1/pulls/validate', methods=['POST'])
    def validate_pull_request():
        """Validate a pull request against its repository's rules."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object', 'status': 'error'}), 400

        try:
            job_request = PullRequestJobRequest.model_validate(data)
        except pydantic.ValidationError as e:
            return jsonify({'error': str(e), 'status': 'error'}), 400

        job = PullRequestJob(
            owner=job_request.owner,
            repo=job_request.repo,
            number=job_request.number,
        )

        try:
            failures = api.validate(job)
        except ValidationError as e:
            return jsonify({
                'error': str(e),
                'status': 'error',
                'repository': e.repository,
                'rule': e.rule,
            }), _error_status(e)

        return jsonify({
            'repository': job.repository,
            'number': job.number,
            'status': 'failed' if failures else 'passed',
            'failures': failures,
        })

    return app
