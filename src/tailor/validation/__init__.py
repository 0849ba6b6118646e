"""
Validation Pipeline

Exemption resolution, rule evaluation, and the expression language rules
are written in.
"""

from .exemptions import resolve_exemptions, parse_disable_directive, DISABLE_MARKER
from .evaluator import evaluate_rules
from .expressions import ExpressionEvaluator, evaluate_expression

__all__ = [
    'resolve_exemptions',
    'parse_disable_directive',
    'DISABLE_MARKER',
    'evaluate_rules',
    'ExpressionEvaluator',
    'evaluate_expression',
]
