"""Data models shared by the tool-call validator."""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import SchemaError


class PropertySchema(BaseModel):
    """Declared shape of a single tool parameter."""

    model_config = ConfigDict(extra="allow")

    type: Optional[Union[str, list[str]]] = Field(default=None, description="JSON type or list of types")
    description: Optional[str] = Field(default=None, description="Parameter description")


class ParameterSchema(BaseModel):
    """JSON-Schema-like description of a tool's arguments."""

    model_config = ConfigDict(extra="allow")

    properties: dict[str, PropertySchema] = Field(
        default_factory=dict,
        description="Declared parameters keyed by name",
    )
    required: list[str] = Field(
        default_factory=list,
        description="Names of parameters that must be present",
    )

    @classmethod
    def from_json_schema(cls, schema: Any) -> "ParameterSchema":
        """
        Build a ParameterSchema from a raw JSON schema mapping.

        Args:
            schema: A ParameterSchema, or a dict with ``properties`` / ``required``

        Returns:
            ParameterSchema instance

        Raises:
            SchemaError: If the mapping cannot describe tool parameters
        """
        if isinstance(schema, cls):
            return schema
        if not isinstance(schema, dict):
            raise SchemaError(f"Parameter schema must be an object, got {type(schema).__name__}")
        try:
            return cls.model_validate(schema)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise SchemaError(f"Invalid parameter schema: {details}") from e

    def declared_types(self) -> dict[str, str]:
        """Map of parameter name to declared type.

        Untyped properties and union types are not enforced.
        """
        return {
            name: prop.type
            for name, prop in self.properties.items()
            if isinstance(prop.type, str) and prop.type
        }


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call proposed by a model."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DangerCheck:
    """Outcome of scanning arguments for dangerous patterns."""

    dangerous: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class ParseResult:
    """Outcome of lenient JSON parsing."""

    parsed: Any
    success: bool


@dataclass(frozen=True)
class CoercionResult:
    """Outcome of coercing one value to a declared type."""

    value: Any
    coerced: bool


@dataclass(frozen=True)
class FuzzyMatch:
    """Closest known tool name for a proposed name.

    ``distance`` is None only when there were no candidates to compare.
    """

    match: Optional[str]
    distance: Optional[int]


@dataclass
class ValidationVerdict:
    """Result of validating one tool invocation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    repaired_arguments: Optional[dict[str, Any]] = None
    blocked: bool = False
    block_reason: Optional[str] = None
    dangerous: bool = False
    repaired_errors: list[str] = field(default_factory=list)
    suggestion: Optional[FuzzyMatch] = None

    def __post_init__(self) -> None:
        if self.blocked and self.repaired_arguments is not None:
            raise ValueError("A blocked verdict cannot carry repaired arguments")
        if self.valid and self.errors:
            raise ValueError("A valid verdict cannot carry errors")

    @property
    def repaired(self) -> bool:
        return self.repaired_arguments is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "repaired_arguments": self.repaired_arguments,
            "blocked": self.blocked,
            "block_reason": self.block_reason,
            "suggestion": asdict(self.suggestion) if self.suggestion else None,
        }

    def __str__(self) -> str:
        lines = [
            f"  Valid: {str(self.valid).lower()}",
            f"  Errors: {', '.join(self.errors) or 'none'}",
            f"  Repaired: {'yes' if self.repaired else 'no'}",
            f"  Blocked: {'yes' if self.blocked else 'no'}",
        ]
        if self.block_reason:
            lines.append(f"  Reason: {self.block_reason}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ValidatorStatistics:
    """Snapshot of the validator counters."""

    validated: int = 0
    repaired: int = 0
    blocked: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return asdict(self)

    def __str__(self) -> str:
        return (
            "Tool Validator Statistics:\n"
            f"  Validated: {self.validated}\n"
            f"  Repaired: {self.repaired}\n"
            f"  Blocked: {self.blocked}\n"
            f"  Errors: {self.errors}"
        )
