"""
Rule Exemptions

Repository admins can switch a rule off for a single pull request by
commenting `tailor disable <rule name>`. Directives from anyone else are
ignored. The authority of every directive author is verified against the
repository; a lookup that cannot be completed aborts the run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from ..errors import AuthorityCheckError
from ..models.pull_request import Comment, Permission


logger = logging.getLogger(__name__)

DISABLE_MARKER = "tailor disable"

PermissionLookup = Callable[[str], Permission]


@dataclass(frozen=True)
class DisableDirective:
    """A well-formed disable request found in a comment."""
    rule_name: str
    login: str


def parse_disable_directive(body: str) -> Optional[str]:
    """
    Extract the rule name from a comment body.

    The marker is located first; the rule name is the trimmed text after
    its first occurrence. Returns None when the marker is absent or
    nothing but whitespace follows it.
    """
    index = body.find(DISABLE_MARKER)
    if index < 0:
        return None

    payload = body[index + len(DISABLE_MARKER):].strip()
    if not payload:
        return None
    return payload


def find_directives(comments: Sequence[Comment]) -> List[DisableDirective]:
    """Collect disable directives in comment order."""
    directives = []
    for comment in comments:
        rule_name = parse_disable_directive(comment.body)
        if rule_name is None:
            continue
        directives.append(DisableDirective(rule_name=rule_name, login=comment.author.login))
    return directives


def _lookup_permissions(
    repository: str,
    logins: List[str],
    permission_lookup: PermissionLookup,
    max_workers: Optional[int],
) -> Dict[str, Permission]:
    permissions = {}

    with ThreadPoolExecutor(max_workers=max_workers or len(logins)) as executor:
        futures = {login: executor.submit(permission_lookup, login) for login in logins}

        for login in logins:
            try:
                permissions[login] = Permission(futures[login].result())
            except AuthorityCheckError:
                raise
            except Exception as e:
                raise AuthorityCheckError(
                    f"Could not verify permission of {login} on {repository}: {e}",
                    login=login,
                    repository=repository,
                ) from e

    return permissions


def resolve_exemptions(
    repository: str,
    comments: Sequence[Comment],
    permission_lookup: PermissionLookup,
    max_workers: Optional[int] = None,
) -> FrozenSet[str]:
    """
    Resolve the rule names exempted for this run.

    Args:
        repository: "owner/repo", used for error context
        comments: PR comments in chronological order
        permission_lookup: Returns the repository permission of a login
        max_workers: Bound on concurrent permission lookups

    Returns:
        Names of exempted rules

    Raises:
        AuthorityCheckError: When a directive author's permission cannot
            be determined
    """
    directives = find_directives(comments)
    if not directives:
        return frozenset()

    # One lookup per distinct author gives the same answer as one per directive.
    # Comments without a linked account have no identity to authorize.
    logins = list(dict.fromkeys(directive.login for directive in directives if directive.login))
    permissions = {'': Permission.NONE}
    if logins:
        permissions.update(_lookup_permissions(repository, logins, permission_lookup, max_workers))

    exemptions = set()
    for directive in directives:
        permission = permissions[directive.login]
        if permission is Permission.ADMIN:
            logger.info(f"{directive.login} disabled rule '{directive.rule_name}' on {repository}")
            exemptions.add(directive.rule_name)
        else:
            logger.info(
                f"Ignoring disable of '{directive.rule_name}' by {directive.login} "
                f"({permission.value} permission) on {repository}"
            )

    return frozenset(exemptions)
