"""
Tool Validator - validation and repair of tool calls from local AI models.

Blocks dangerous calls, coerces mistyped arguments to their declared
types, parses near-JSON and suggests known tool names for hallucinated ones.
"""

__version__ = "0.1.0"

from .config import RepairStrategy, ValidatorConfig, get_config
from .danger import DANGER_RULES, DangerRule, check_dangerous_call
from .engine import HookResult, ToolCallEvent, ToolCallValidator, ValidatorEngine
from .exceptions import ConfigError, SchemaError, ValidatorError
from .fuzzy import find_closest_tool_name, levenshtein_distance
from .json_repair import try_parse_json
from .models import (
    ParameterSchema,
    ToolInvocation,
    ValidationVerdict,
    ValidatorStatistics,
)
from .coercion import coerce_value
from .schema import repair_arguments, validate_arguments

__all__ = [
    # Config
    "ValidatorConfig",
    "RepairStrategy",
    "get_config",
    # Engine
    "ValidatorEngine",
    "ToolCallValidator",
    "ToolCallEvent",
    "HookResult",
    # Models
    "ToolInvocation",
    "ParameterSchema",
    "ValidationVerdict",
    "ValidatorStatistics",
    # Helpers
    "check_dangerous_call",
    "DangerRule",
    "DANGER_RULES",
    "try_parse_json",
    "coerce_value",
    "validate_arguments",
    "repair_arguments",
    "levenshtein_distance",
    "find_closest_tool_name",
    # Errors
    "ValidatorError",
    "ConfigError",
    "SchemaError",
]
