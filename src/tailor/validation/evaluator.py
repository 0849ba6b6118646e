"""
Rule Evaluator

Evaluates configured rules against a pull request and collects the
failure messages of those that do not hold.
"""

import logging
from typing import AbstractSet, Callable, List, Sequence

from ..errors import ExpressionError
from ..models.pull_request import PullRequest
from ..models.rule import Rule
from .expressions import evaluate_expression


logger = logging.getLogger(__name__)

ExpressionCapability = Callable[[str, PullRequest], bool]


def evaluate_rules(
    rules: Sequence[Rule],
    exemptions: AbstractSet[str],
    model: PullRequest,
    repository: str,
    evaluate: ExpressionCapability = evaluate_expression,
) -> List[str]:
    """
    Evaluate every non-exempted rule in configured order.

    Args:
        rules: Rules in configured order
        exemptions: Names of rules to skip
        model: Pull request to check
        repository: "owner/repo", reported with expression errors
        evaluate: Expression capability

    Returns:
        Failure messages, in the order of `rules`

    Raises:
        ExpressionError: When a rule expression cannot be evaluated; the
            error names the rule and repository
    """
    failures = []
    evaluated = 0

    for rule in rules:
        if rule.name in exemptions:
            logger.debug(f"Skipping exempted rule '{rule.name}'")
            continue
        evaluated += 1

        try:
            passed = evaluate(rule.expression, model)
        except ExpressionError as e:
            raise ExpressionError(e.reason, repository=repository, rule=rule.name) from e

        if not isinstance(passed, bool):
            raise ExpressionError(
                f"Expression must evaluate to a boolean, got {type(passed).__name__}",
                repository=repository,
                rule=rule.name,
            )

        if not passed:
            failures.append(rule.failure_message)

    logger.info(f"Evaluated {evaluated} rules on {repository}: {len(failures)} failed")
    return failures
