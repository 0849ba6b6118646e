"""
Rule Expression Language

Rule expressions use Python syntax but are never handed to eval(): the
parsed tree is walked node by node and only a small, side-effect-free
subset is accepted.

    commits.size > 0 and body != ""
    all(len(c.message) <= 72 for c in commits)
    not matches(title, "^WIP")

Names resolve to the top-level fields of the PullRequest model. Attribute
access is limited to model fields plus `.size`, which is the length of a
string or sequence.
"""

import ast
import dataclasses
import logging
import operator
import re
from typing import Any, Callable, Dict, Iterator

from ..errors import ExpressionError


logger = logging.getLogger(__name__)


def _matches(value: str, pattern: str) -> bool:
    return re.search(pattern, value) is not None


FUNCTIONS: Dict[str, Callable[..., Any]] = {
    'len': len,
    'any': any,
    'all': all,
    'lower': str.lower,
    'upper': str.upper,
    'startswith': str.startswith,
    'endswith': str.endswith,
    'contains': lambda value, part: part in value,
    'matches': _matches,
}

CONSTANTS: Dict[str, Any] = {
    'true': True,
    'false': False,
    'null': None,
}

BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

UNARY_OPERATORS = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

COMPARE_OPERATORS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}


class ExpressionEvaluator:
    """
    Evaluates rule expressions against a model object.

    Parsed trees are cached by expression text, so a rule list is parsed
    once per evaluator no matter how many pull requests it checks.
    """

    def __init__(self):
        self._cache: Dict[str, ast.Expression] = {}

    def compile(self, expression: str) -> ast.Expression:
        """
        Parse an expression.

        Raises:
            ExpressionError: When the text is not a valid expression
        """
        tree = self._cache.get(expression)
        if tree is None:
            try:
                tree = ast.parse(expression.strip(), mode='eval')
            except SyntaxError as e:
                raise ExpressionError(f"Invalid expression syntax: {e.msg}") from e
            except RecursionError as e:
                raise ExpressionError("Expression is nested too deeply") from e
            logger.debug(f"Parsed expression: {expression}")
            self._cache[expression] = tree
        return tree

    def evaluate(self, expression: str, model: Any) -> bool:
        """
        Evaluate a boolean expression against a model.

        Args:
            expression: Rule expression text
            model: Dataclass instance whose fields are the expression's names

        Returns:
            The boolean result

        Raises:
            ExpressionError: On syntax errors, unknown names or attributes,
                type mismatches, or a non-boolean result
        """
        tree = self.compile(expression)
        scope = dict(CONSTANTS)
        scope.update({f.name: getattr(model, f.name) for f in dataclasses.fields(model)})

        try:
            result = self._eval(tree.body, scope)
        except ExpressionError:
            raise
        except RecursionError as e:
            raise ExpressionError("Expression is nested too deeply") from e
        except (TypeError, ValueError, ArithmeticError, IndexError, KeyError, re.error) as e:
            raise ExpressionError(f"{type(e).__name__}: {e}") from e

        if not isinstance(result, bool):
            raise ExpressionError(
                f"Expression must evaluate to a boolean, got {type(result).__name__}"
            )
        return result

    def _eval(self, node: ast.AST, scope: Dict[str, Any]) -> Any:
        handler = getattr(self, f'_eval_{type(node).__name__}', None)
        if handler is None:
            raise ExpressionError(f"Unsupported syntax: {type(node).__name__}")
        return handler(node, scope)

    def _eval_Constant(self, node: ast.Constant, scope: Dict[str, Any]) -> Any:
        return node.value

    def _eval_Name(self, node: ast.Name, scope: Dict[str, Any]) -> Any:
        if node.id not in scope:
            raise ExpressionError(f"Unknown name '{node.id}'")
        return scope[node.id]

    def _eval_Attribute(self, node: ast.Attribute, scope: Dict[str, Any]) -> Any:
        value = self._eval(node.value, scope)

        if node.attr == 'size' and isinstance(value, (str, list, tuple)):
            return len(value)

        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            field_names = {f.name for f in dataclasses.fields(value)}
            if node.attr in field_names:
                return getattr(value, node.attr)

        raise ExpressionError(f"Unknown attribute '{node.attr}' on {type(value).__name__}")

    def _eval_Subscript(self, node: ast.Subscript, scope: Dict[str, Any]) -> Any:
        value = self._eval(node.value, scope)
        index = self._eval(node.slice, scope)
        if not isinstance(value, (str, list, tuple)):
            raise ExpressionError(f"Cannot index {type(value).__name__}")
        return value[index]

    def _eval_BoolOp(self, node: ast.BoolOp, scope: Dict[str, Any]) -> Any:
        if isinstance(node.op, ast.And):
            result = True
            for operand in node.values:
                result = self._eval(operand, scope)
                if not result:
                    return result
            return result

        result = False
        for operand in node.values:
            result = self._eval(operand, scope)
            if result:
                return result
        return result

    def _eval_UnaryOp(self, node: ast.UnaryOp, scope: Dict[str, Any]) -> Any:
        op = UNARY_OPERATORS.get(type(node.op))
        if op is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return op(self._eval(node.operand, scope))

    def _eval_BinOp(self, node: ast.BinOp, scope: Dict[str, Any]) -> Any:
        op = BINARY_OPERATORS.get(type(node.op))
        if op is None:
            raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
        return op(self._eval(node.left, scope), self._eval(node.right, scope))

    def _eval_Compare(self, node: ast.Compare, scope: Dict[str, Any]) -> bool:
        left = self._eval(node.left, scope)
        for op_node, comparator in zip(node.ops, node.comparators):
            op = COMPARE_OPERATORS.get(type(op_node))
            if op is None:
                raise ExpressionError(f"Unsupported comparison: {type(op_node).__name__}")
            right = self._eval(comparator, scope)
            if not op(left, right):
                return False
            left = right
        return True

    def _eval_IfExp(self, node: ast.IfExp, scope: Dict[str, Any]) -> Any:
        if self._eval(node.test, scope):
            return self._eval(node.body, scope)
        return self._eval(node.orelse, scope)

    def _eval_List(self, node: ast.List, scope: Dict[str, Any]) -> list:
        return [self._eval(element, scope) for element in node.elts]

    def _eval_Tuple(self, node: ast.Tuple, scope: Dict[str, Any]) -> tuple:
        return tuple(self._eval(element, scope) for element in node.elts)

    def _eval_Call(self, node: ast.Call, scope: Dict[str, Any]) -> Any:
        if not isinstance(node.func, ast.Name) or node.func.id not in FUNCTIONS:
            raise ExpressionError(f"Unknown function '{ast.unparse(node.func)}'")
        if node.keywords:
            raise ExpressionError(f"Keyword arguments are not supported in {node.func.id}()")

        lazy = len(node.args) == 1 and isinstance(node.args[0], ast.GeneratorExp)
        if node.func.id in ('any', 'all') and lazy:
            # Lazy, so any/all stop at the first deciding item
            return FUNCTIONS[node.func.id](self._iterate(node.args[0], scope))

        args = [self._eval(arg, scope) for arg in node.args]
        return FUNCTIONS[node.func.id](*args)

    def _eval_GeneratorExp(self, node: ast.GeneratorExp, scope: Dict[str, Any]) -> list:
        return list(self._iterate(node, scope))

    _eval_ListComp = _eval_GeneratorExp

    def _iterate(self, node: ast.AST, scope: Dict[str, Any]) -> Iterator[Any]:
        if len(node.generators) != 1:
            raise ExpressionError("Only a single 'for' clause is supported")

        generator = node.generators[0]
        if not isinstance(generator.target, ast.Name) or generator.is_async:
            raise ExpressionError("Loop target must be a single name")

        iterable = self._eval(generator.iter, scope)
        if not isinstance(iterable, (str, list, tuple)):
            raise ExpressionError(f"Cannot iterate over {type(iterable).__name__}")

        for item in iterable:
            inner = dict(scope)
            inner[generator.target.id] = item
            if all(self._eval(condition, inner) for condition in generator.ifs):
                yield self._eval(node.elt, inner)


default_evaluator = ExpressionEvaluator()


def evaluate_expression(expression: str, model: Any) -> bool:
    """Evaluate an expression with the shared evaluator."""
    return default_evaluator.evaluate(expression, model)
