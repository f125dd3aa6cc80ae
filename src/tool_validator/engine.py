"""Tool-call validation engine.

``ToolCallValidator`` turns one invocation into a verdict without side
effects. ``ValidatorEngine`` wraps it with the process-wide state (statistics,
observed tool names, registered schemas) and the before/after hook handlers
the host calls.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from loguru import logger

from .config import ValidatorConfig
from .danger import check_dangerous_call
from .exceptions import SchemaError
from .fuzzy import find_closest_tool_name
from .logging import COMPONENT
from .models import FuzzyMatch, ParameterSchema, ToolInvocation, ValidationVerdict, ValidatorStatistics
from .schema import repair_arguments, validate_arguments

SchemaLike = Union[ParameterSchema, dict[str, Any]]


@dataclass
class ToolCallEvent:
    """A tool call as seen by the host's before/after hooks."""

    tool_name: str
    params: dict[str, Any] = field(default_factory=dict)
    schema: Optional[SchemaLike] = None
    result: Any = None
    error: Optional[str] = None


@dataclass
class HookResult:
    """What the host should do with an intercepted call."""

    block: bool = False
    block_reason: Optional[str] = None
    params: Optional[dict[str, Any]] = None


class ToolCallValidator:
    """Builds a validation verdict for a single tool invocation."""

    def __init__(self, config: Optional[ValidatorConfig] = None) -> None:
        self.config = config or ValidatorConfig()

    def validate(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        schema: Optional[SchemaLike] = None,
    ) -> ValidationVerdict:
        """
        Validate a tool call and attempt repair.

        The danger check always runs first; a dangerous call is blocked and
        never repaired. Schema violations are repaired by coercion when the
        strategy allows it, and the repaired arguments are only returned if
        they pass validation again. A schema that cannot be interpreted makes
        the call invalid instead of raising.

        Args:
            tool_name: Name of the tool being invoked
            arguments: Arguments proposed by the model
            schema: Optional parameter schema for the tool

        Returns:
            ValidationVerdict for the call
        """
        if self.config.block_dangerous_calls:
            danger = check_dangerous_call(tool_name, arguments)
            if danger.dangerous:
                reason = danger.reason or "Dangerous call detected"
                return ValidationVerdict(
                    valid=False,
                    errors=[reason],
                    blocked=True,
                    block_reason=reason,
                    dangerous=True,
                )

        if schema is None:
            return ValidationVerdict(valid=True)

        try:
            schema = ParameterSchema.from_json_schema(schema)
        except SchemaError as e:
            return self._reject([str(e)])

        errors = validate_arguments(arguments, schema)
        if not errors:
            return ValidationVerdict(valid=True)

        if self.config.attempts_coercion:
            repaired = repair_arguments(arguments, schema)
            if repaired is not None:
                return ValidationVerdict(
                    valid=True,
                    repaired_arguments=repaired,
                    repaired_errors=errors,
                )

        return self._reject(errors)

    def _reject(self, errors: list[str]) -> ValidationVerdict:
        if self.config.should_block_invalid:
            return ValidationVerdict(
                valid=False,
                errors=errors,
                blocked=True,
                block_reason=f"Validation failed: {', '.join(errors)}",
            )
        return ValidationVerdict(valid=False, errors=errors)


class ValidatorEngine:
    """Validator state shared by the host hooks.

    Counters, observed tool names and registered schemas are guarded by a
    single lock so hooks may run concurrently.
    """

    def __init__(self, config: Optional[ValidatorConfig] = None) -> None:
        self.config = config or ValidatorConfig()
        self.validator = ToolCallValidator(self.config)
        self.log = logger.bind(component=COMPONENT, engine=id(self))

        self._lock = threading.Lock()
        self._known_tools: set[str] = set()
        self._schemas: dict[str, ParameterSchema] = {}
        self._validated = 0
        self._repaired = 0
        self._blocked = 0
        self._errors = 0

    # State

    def statistics(self) -> ValidatorStatistics:
        """Snapshot of the validation counters."""
        with self._lock:
            return ValidatorStatistics(
                validated=self._validated,
                repaired=self._repaired,
                blocked=self._blocked,
                errors=self._errors,
            )

    def known_tool_names(self) -> tuple[str, ...]:
        """Tool names observed completing successfully, sorted."""
        with self._lock:
            return tuple(sorted(self._known_tools))

    def record_tool_name(self, tool_name: str) -> None:
        """Add a successfully invoked tool name to the fuzzy-match pool."""
        with self._lock:
            self._known_tools.add(tool_name)

    def register_schema(self, tool_name: str, schema: SchemaLike) -> None:
        """
        Register the parameter schema for a tool.

        Raises:
            SchemaError: If the schema cannot be interpreted
        """
        parsed = ParameterSchema.from_json_schema(schema)
        with self._lock:
            self._schemas[tool_name] = parsed

    def get_schema(self, tool_name: str) -> Optional[ParameterSchema]:
        with self._lock:
            return self._schemas.get(tool_name)

    # Validation

    def suggest_tool_name(self, tool_name: str) -> Optional[FuzzyMatch]:
        """
        Suggest a known tool name for an unknown one.

        Advisory only: the suggestion is logged and reported but the call is
        still dispatched under the name the model used.
        """
        if not self.config.allow_tool_name_fuzzy_match:
            return None

        candidates = self.known_tool_names()
        if not candidates:
            return None

        found = find_closest_tool_name(tool_name, candidates)
        if (
            found.match is None
            or found.match == tool_name
            or found.distance > self.config.max_fuzzy_match_distance
        ):
            return None

        if self.config.log_validation_errors:
            self.log.info(
                f'tool-validator: fuzzy matched "{tool_name}" -> "{found.match}" '
                f"(distance: {found.distance})"
            )
        return found

    def validate(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        schema: Optional[SchemaLike] = None,
    ) -> ValidationVerdict:
        """Validate without touching statistics, using the registered schema if none is given."""
        if schema is None:
            schema = self.get_schema(tool_name)
        return self.validator.validate(tool_name, arguments, schema)

    def process(
        self,
        invocation: ToolInvocation,
        schema: Optional[SchemaLike] = None,
    ) -> ValidationVerdict:
        """
        Validate an invocation on the call path, updating statistics and logging.

        Args:
            invocation: Tool name and arguments proposed by the model
            schema: Parameter schema; falls back to the registered one

        Returns:
            ValidationVerdict, with any tool-name suggestion attached
        """
        with self._lock:
            self._validated += 1

        suggestion = self.suggest_tool_name(invocation.name)
        verdict = self.validate(invocation.name, invocation.arguments, schema)
        verdict.suggestion = suggestion

        schema_failed = verdict.repaired or (not verdict.valid and not verdict.dangerous)
        with self._lock:
            if schema_failed:
                self._errors += 1
            if verdict.repaired:
                self._repaired += 1
            if verdict.blocked:
                self._blocked += 1

        if self.config.log_validation_errors:
            self._log_verdict(invocation.name, verdict)

        return verdict

    def _log_verdict(self, tool_name: str, verdict: ValidationVerdict) -> None:
        if verdict.blocked:
            self.log.warning(f"tool-validator: blocked {tool_name}: {verdict.block_reason}")
            return

        if verdict.repaired:
            self.log.info(
                f"tool-validator: repaired {tool_name} params "
                f"({', '.join(verdict.repaired_errors)})"
            )
        elif verdict.errors:
            self.log.warning(
                f"tool-validator: validation errors for {tool_name}: {', '.join(verdict.errors)}"
            )

    # Host hooks

    def before_tool_call(self, event: ToolCallEvent) -> Optional[HookResult]:
        """
        Intercept a tool call before it runs.

        Returns:
            HookResult blocking the call or substituting repaired params,
            or None to let the call proceed unchanged
        """
        if not self.config.enabled:
            return None

        verdict = self.process(ToolInvocation(name=event.tool_name, arguments=event.params), event.schema)

        if verdict.blocked:
            return HookResult(block=True, block_reason=verdict.block_reason)
        if verdict.repaired:
            return HookResult(params=verdict.repaired_arguments)
        return None

    def after_tool_call(self, event: ToolCallEvent) -> None:
        """Remember the names of tools that completed without error."""
        if event.error is None:
            self.record_tool_name(event.tool_name)
