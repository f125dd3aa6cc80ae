"""Detection of dangerous tool-call arguments."""

import re
from dataclasses import dataclass
from typing import Any, Iterable

from .models import DangerCheck

ANY_TOOL = "*"


@dataclass(frozen=True)
class DangerRule:
    """Patterns that flag a tool argument as dangerous.

    ``tool`` is a tool name or ``ANY_TOOL``.
    """

    tool: str
    param: str
    patterns: tuple[re.Pattern, ...]

    def applies_to(self, tool_name: str) -> bool:
        return self.tool == ANY_TOOL or self.tool == tool_name


_SHELL_PATTERNS = (
    re.compile(r"(;|&&|\|\|)\s*rm\s+-rf"),
    re.compile(r"&&\s*(curl|wget).*\|.*sh"),
)
_TRAVERSAL_PATTERNS = (re.compile(r"\.\.[/\\]"),)
_SQL_PATTERNS = (
    re.compile(r";\s*DROP\s+TABLE", re.IGNORECASE),
    re.compile(r"'\s*OR\s+'1'\s*=\s*'1", re.IGNORECASE),
)

DANGER_RULES: tuple[DangerRule, ...] = (
    # Shell injection
    DangerRule(tool="bash", param="command", patterns=_SHELL_PATTERNS),
    DangerRule(tool="exec", param="command", patterns=_SHELL_PATTERNS),
    # Path traversal
    DangerRule(tool=ANY_TOOL, param="path", patterns=_TRAVERSAL_PATTERNS),
    DangerRule(tool=ANY_TOOL, param="file", patterns=_TRAVERSAL_PATTERNS),
    # SQL injection
    DangerRule(tool=ANY_TOOL, param="query", patterns=_SQL_PATTERNS),
)


def check_dangerous_call(
    tool_name: str,
    arguments: dict[str, Any],
    rules: Iterable[DangerRule] = DANGER_RULES,
) -> DangerCheck:
    """
    Scan tool arguments against the danger rule table.

    Stops at the first matching pattern. Non-string argument values are
    never flagged.

    Args:
        tool_name: Name of the tool being invoked
        arguments: Arguments proposed for the call
        rules: Rule table to scan with

    Returns:
        DangerCheck naming the offending field and pattern, if any
    """
    if not isinstance(arguments, dict):
        return DangerCheck(dangerous=False)

    for rule in rules:
        if not rule.applies_to(tool_name):
            continue

        value = arguments.get(rule.param)
        if not isinstance(value, str):
            continue

        for pattern in rule.patterns:
            if pattern.search(value):
                return DangerCheck(
                    dangerous=True,
                    reason=(
                        f"Potentially dangerous pattern detected in {rule.param}: "
                        f"{pattern.pattern}"
                    ),
                )

    return DangerCheck(dangerous=False)
