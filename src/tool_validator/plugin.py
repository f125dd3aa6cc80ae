"""Host plugin registration for the tool validator.

The host passes an ``api`` object exposing:

- ``plugin_config``: mapping of camelCase settings (may be None)
- ``logger``: object with ``info`` and ``warn`` methods
- ``on(hook_name, handler, priority=None)``
- ``register_tool(tool, name=...)``
- ``register_cli(registrar, commands=[...])``
- ``register_service(service)``
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from .cli import create_app
from .config import ValidatorConfig
from .engine import ValidatorEngine
from .json_repair import try_parse_json
from .logging import forward_to_host

PLUGIN_ID = "tool-validator"
PLUGIN_NAME = "Tool Validator"
PLUGIN_DESCRIPTION = "Tool calling validation and repair for local AI models"

BEFORE_TOOL_CALL = "before_tool_call"
AFTER_TOOL_CALL = "after_tool_call"
# Runs ahead of other before_tool_call handlers
HOOK_PRIORITY = 100

STATS_TOOL = "tool_validator_stats"
TEST_TOOL = "tool_validator_test"


def config_json_schema() -> dict[str, Any]:
    """JSON schema of the plugin configuration."""
    return ValidatorConfig.model_json_schema()


def _text_result(text: str, details: Any) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "details": details}


@dataclass
class ToolDefinition:
    """A tool exposed to the host's model."""

    name: str
    label: str
    description: str
    parameters: dict[str, Any]
    execute: Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]]


def build_stats_tool(engine: ValidatorEngine) -> ToolDefinition:
    async def execute(tool_call_id: str, args: dict[str, Any]) -> dict[str, Any]:
        stats = engine.statistics()
        return _text_result(str(stats), stats.to_dict())

    return ToolDefinition(
        name=STATS_TOOL,
        label="Tool Validator Stats",
        description="Get statistics about tool validation",
        parameters={"type": "object", "properties": {}},
        execute=execute,
    )


def build_test_tool(engine: ValidatorEngine) -> ToolDefinition:
    """Tool that validates a sample call without counting it in statistics."""

    async def execute(tool_call_id: str, args: dict[str, Any]) -> dict[str, Any]:
        tool_name = args.get("tool_name", "")
        parsed = try_parse_json(args.get("params", ""))
        if not parsed.success:
            return _text_result("Invalid JSON in params", {"error": "invalid_json"})
        if not isinstance(parsed.parsed, dict):
            return _text_result("Params must be a JSON object", {"error": "invalid_params"})

        schema = None
        if args.get("schema"):
            parsed_schema = try_parse_json(args["schema"])
            if not parsed_schema.success or not isinstance(parsed_schema.parsed, dict):
                return _text_result("Invalid JSON in schema", {"error": "invalid_schema"})
            schema = parsed_schema.parsed

        verdict = engine.validate(tool_name, parsed.parsed, schema)
        return _text_result(
            f"Validation result for {tool_name}:\n{verdict}",
            verdict.to_dict(),
        )

    return ToolDefinition(
        name=TEST_TOOL,
        label="Tool Validator Test",
        description="Test tool validation with sample data",
        parameters={
            "type": "object",
            "properties": {
                "tool_name": {"type": "string", "description": "Tool name to test"},
                "params": {"type": "string", "description": "JSON params to validate"},
                "schema": {"type": "string", "description": "Optional JSON parameter schema"},
            },
            "required": ["tool_name", "params"],
        },
        execute=execute,
    )


class ValidatorService:
    """Background service announcing the validator's lifecycle."""

    id = PLUGIN_ID

    def __init__(self, engine: ValidatorEngine, log_handler_id: Optional[int] = None) -> None:
        self.engine = engine
        self.log_handler_id = log_handler_id

    def start(self) -> None:
        config = self.engine.config
        self.engine.log.info(
            f"tool-validator: initialized (strategy: {config.repair_strategy.value}, "
            f"strict: {str(config.strict_mode).lower()})"
        )

    def stop(self) -> None:
        stats = self.engine.statistics()
        self.engine.log.info(
            f"tool-validator: stopped (validated: {stats.validated}, "
            f"repaired: {stats.repaired}, blocked: {stats.blocked})"
        )
        if self.log_handler_id is not None:
            logger.remove(self.log_handler_id)
            self.log_handler_id = None


def register(api: Any) -> Optional[ValidatorEngine]:
    """
    Register the tool validator with a host.

    Args:
        api: Host plugin API (see module docstring)

    Returns:
        The engine backing the registered hooks, or None when disabled

    Raises:
        ConfigError: If the plugin configuration is invalid
    """
    config = ValidatorConfig.from_plugin_config(getattr(api, "plugin_config", None))

    if not config.enabled:
        api.logger.info("tool-validator: disabled by config")
        return None

    engine = ValidatorEngine(config)
    handler_id = forward_to_host(api.logger, engine=id(engine))

    api.on(BEFORE_TOOL_CALL, engine.before_tool_call, priority=HOOK_PRIORITY)
    api.on(AFTER_TOOL_CALL, engine.after_tool_call)

    api.register_tool(build_stats_tool(engine), name=STATS_TOOL)
    api.register_tool(build_test_tool(engine), name=TEST_TOOL)

    def register_commands(program: Any) -> None:
        program.add_typer(create_app(engine), name="tool-validator")

    api.register_cli(register_commands, commands=["tool-validator"])
    api.register_service(ValidatorService(engine, handler_id))

    return engine
