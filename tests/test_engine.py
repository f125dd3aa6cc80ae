"""Tests for the validation engine and its hooks."""

import threading

import pytest
from loguru import logger

from tool_validator.config import RepairStrategy, ValidatorConfig
from tool_validator.engine import HookResult, ToolCallEvent, ToolCallValidator, ValidatorEngine
from tool_validator.models import ToolInvocation, ValidationVerdict

COUNT_SCHEMA = {"type": "object", "properties": {"count": {"type": "number"}}, "required": ["count"]}
NAMED_SCHEMA = {
    "type": "object",
    "properties": {"count": {"type": "number"}, "name": {"type": "string"}},
    "required": ["count", "name"],
}


class TestToolCallValidator:
    """Verdict assembly without side effects."""

    def setup_method(self):
        """Set up test fixtures."""
        self.validator = ToolCallValidator(ValidatorConfig())

    def test_no_schema_is_valid(self):
        """Test that calls without a schema pass."""
        verdict = self.validator.validate("anything", {"x": 1})

        assert verdict.valid is True
        assert verdict.errors == []
        assert verdict.blocked is False

    def test_schema_valid(self):
        """Test that schema-valid calls pass untouched."""
        verdict = self.validator.validate("counter", {"count": 2}, COUNT_SCHEMA)

        assert verdict.valid is True
        assert verdict.errors == []
        assert verdict.repaired_arguments is None

    def test_malformed_schema_is_invalid(self):
        """Test that a schema with non-object properties makes the call invalid."""
        verdict = self.validator.validate("counter", {"count": 1}, {"properties": {"count": "number"}})

        assert verdict.valid is False
        assert verdict.blocked is False
        assert len(verdict.errors) == 1
        assert verdict.errors[0].startswith("Invalid parameter schema: properties.count")

    def test_dangerous_call_is_blocked(self):
        """Test that a dangerous command is blocked."""
        verdict = self.validator.validate("bash", {"command": "ls; rm -rf /"})

        assert verdict.blocked is True
        assert verdict.valid is False
        assert verdict.dangerous is True
        assert verdict.block_reason is not None

    def test_dangerous_call_is_never_repaired(self):
        """Test that danger blocks before schema repair is attempted."""
        schema = {"properties": {"path": {"type": "string"}, "limit": {"type": "integer"}}}

        verdict = self.validator.validate(
            "read_file", {"path": "../../../etc/passwd", "limit": "10"}, schema
        )

        assert verdict.blocked is True
        assert verdict.repaired_arguments is None

    def test_danger_check_can_be_disabled(self):
        """Test block_dangerous_calls=False."""
        validator = ToolCallValidator(ValidatorConfig(block_dangerous_calls=False))
        verdict = validator.validate("bash", {"command": "ls; rm -rf /"})

        assert verdict.blocked is False
        assert verdict.valid is True

    def test_coerce_repair(self):
        """Test repair of a numeric string."""
        verdict = self.validator.validate("counter", {"count": "5"}, COUNT_SCHEMA)

        assert verdict.valid is True
        assert verdict.errors == []
        assert verdict.repaired_arguments == {"count": 5}
        assert verdict.repaired_errors == ["/count: Expected number, got string"]

    def test_unrepairable_passes_with_errors(self):
        """Test that unrepairable calls proceed outside strict mode."""
        verdict = self.validator.validate("counter", {"count": "5"}, NAMED_SCHEMA)

        assert verdict.valid is False
        assert verdict.blocked is False
        assert verdict.repaired_arguments is None
        assert "/name: Required property" in verdict.errors

    def test_strict_mode_blocks_unrepairable(self):
        """Test that strict mode blocks and quotes the errors."""
        validator = ToolCallValidator(ValidatorConfig(strict_mode=True))

        verdict = validator.validate("counter", {"count": "5"}, NAMED_SCHEMA)

        assert verdict.blocked is True
        assert verdict.block_reason.startswith("Validation failed: ")
        assert "/name: Required property" in verdict.block_reason

    def test_block_on_validation_failure(self):
        """Test blocking without strict mode."""
        validator = ToolCallValidator(ValidatorConfig(block_on_validation_failure=True))
        verdict = validator.validate("counter", {"count": "five"}, COUNT_SCHEMA)

        assert verdict.blocked is True

    def test_strict_mode_still_repairs(self):
        """Test that repairable calls are not blocked in strict mode."""
        validator = ToolCallValidator(ValidatorConfig(strict_mode=True))
        verdict = validator.validate("counter", {"count": "5"}, COUNT_SCHEMA)

        assert verdict.blocked is False
        assert verdict.repaired_arguments == {"count": 5}

    @pytest.mark.parametrize(
        "strategy",
        [RepairStrategy.DEFAULT, RepairStrategy.PROMPT, RepairStrategy.BLOCK, RepairStrategy.NONE],
    )
    def test_other_strategies_do_not_repair(self, strategy):
        """Test that only the coerce strategy repairs."""
        validator = ToolCallValidator(ValidatorConfig(repair_strategy=strategy))
        verdict = validator.validate("counter", {"count": "5"}, COUNT_SCHEMA)

        assert verdict.valid is False
        assert verdict.repaired_arguments is None
        assert verdict.blocked is False


class TestVerdictInvariants:
    """ValidationVerdict consistency checks."""

    def test_blocked_verdict_cannot_carry_repair(self):
        """Test that blocked verdicts reject repaired arguments."""
        with pytest.raises(ValueError):
            ValidationVerdict(valid=False, blocked=True, repaired_arguments={"a": 1})

    def test_valid_verdict_cannot_carry_errors(self):
        """Test that valid verdicts reject errors."""
        with pytest.raises(ValueError):
            ValidationVerdict(valid=True, errors=["x"])


class TestValidatorEngine:
    """Statistics, known tool names and hooks."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = ValidatorEngine(ValidatorConfig())
        self.messages = []
        self.handler_id = logger.add(self.messages.append, level="INFO", format="{message}")

    def teardown_method(self):
        """Remove the capture sink."""
        logger.remove(self.handler_id)

    def test_blocked_call_statistics(self):
        """Test counters for a dangerous call."""
        verdict = self.engine.process(ToolInvocation("bash", {"command": "ls; rm -rf /"}))

        assert verdict.blocked is True
        stats = self.engine.statistics()
        assert stats.validated == 1
        assert stats.blocked == 1
        assert stats.errors == 0
        assert stats.repaired == 0
        assert any("tool-validator: blocked bash" in m for m in self.messages)

    def test_repaired_call_statistics(self):
        """Test counters and logs for a repaired call."""
        verdict = self.engine.process(ToolInvocation("counter", {"count": "5"}), COUNT_SCHEMA)

        assert verdict.repaired_arguments == {"count": 5}
        stats = self.engine.statistics()
        assert stats.repaired == 1
        assert stats.errors == 1
        assert stats.blocked == 0
        assert any("repaired counter params" in m for m in self.messages)

    def test_unrepaired_call_statistics(self):
        """Test that unrepaired failures count as errors only."""
        self.engine.process(ToolInvocation("counter", {"count": "five"}), COUNT_SCHEMA)

        stats = self.engine.statistics()
        assert stats.errors == 1
        assert stats.repaired == 0
        assert stats.blocked == 0
        assert any("validation errors for counter" in m for m in self.messages)

    def test_strict_block_statistics(self):
        """Test that strict-mode blocks count as blocked and errors."""
        engine = ValidatorEngine(ValidatorConfig(strict_mode=True))
        engine.process(ToolInvocation("counter", {"count": "five"}), COUNT_SCHEMA)

        stats = engine.statistics()
        assert stats.blocked == 1
        assert stats.errors == 1

    def test_logging_can_be_disabled(self):
        """Test log_validation_errors=False."""
        engine = ValidatorEngine(ValidatorConfig(log_validation_errors=False))
        engine.process(ToolInvocation("bash", {"command": "ls; rm -rf /"}))

        assert not any("tool-validator" in m for m in self.messages)

    def test_registered_schema_is_used(self):
        """Test the schema registry fallback."""
        self.engine.register_schema("counter", COUNT_SCHEMA)

        verdict = self.engine.process(ToolInvocation("counter", {"count": "5"}))

        assert verdict.repaired_arguments == {"count": 5}
        assert self.engine.get_schema("counter") is not None

    def test_explicit_schema_wins(self):
        """Test that an explicit schema overrides the registered one."""
        self.engine.register_schema("counter", COUNT_SCHEMA)

        verdict = self.engine.validate("counter", {"count": "5"}, {"properties": {}})

        assert verdict.valid is True
        assert verdict.repaired_arguments is None

    def test_validate_does_not_count(self):
        """Test that ad-hoc validation leaves statistics alone."""
        self.engine.validate("bash", {"command": "ls; rm -rf /"})
        assert self.engine.statistics().validated == 0

    def test_fuzzy_suggestion(self):
        """Test that near-miss names get an advisory suggestion."""
        self.engine.record_tool_name("chroma_search")
        self.engine.record_tool_name("chroma_store")

        verdict = self.engine.process(ToolInvocation("chrom_search", {}))

        assert verdict.suggestion is not None
        assert verdict.suggestion.match == "chroma_search"
        assert verdict.suggestion.distance == 1
        assert any('fuzzy matched "chrom_search" -> "chroma_search"' in m for m in self.messages)

    def test_fuzzy_respects_max_distance(self):
        """Test max_fuzzy_match_distance."""
        engine = ValidatorEngine(ValidatorConfig(max_fuzzy_match_distance=0))
        engine.record_tool_name("chroma_search")

        assert engine.process(ToolInvocation("chrom_search", {})).suggestion is None

    def test_fuzzy_can_be_disabled(self):
        """Test allow_tool_name_fuzzy_match=False."""
        engine = ValidatorEngine(ValidatorConfig(allow_tool_name_fuzzy_match=False))
        engine.record_tool_name("chroma_search")

        assert engine.process(ToolInvocation("chrom_search", {})).suggestion is None

    def test_no_suggestion_for_known_name(self):
        """Test that exact known names are not reported."""
        self.engine.record_tool_name("chroma_search")
        assert self.engine.suggest_tool_name("chroma_search") is None

    def test_before_tool_call_block(self):
        """Test the hook result for a blocked call."""
        result = self.engine.before_tool_call(
            ToolCallEvent(tool_name="read_file", params={"path": "../../../etc/passwd"})
        )

        assert isinstance(result, HookResult)
        assert result.block is True
        assert "path" in result.block_reason
        assert result.params is None

    def test_before_tool_call_repair(self):
        """Test the hook result for a repaired call."""
        result = self.engine.before_tool_call(
            ToolCallEvent(tool_name="counter", params={"count": "5"}, schema=COUNT_SCHEMA)
        )

        assert result.block is False
        assert result.params == {"count": 5}

    def test_before_tool_call_passthrough(self):
        """Test that valid and unrepairable calls proceed unchanged."""
        assert self.engine.before_tool_call(ToolCallEvent(tool_name="ls", params={})) is None
        assert (
            self.engine.before_tool_call(
                ToolCallEvent(tool_name="counter", params={"count": "x"}, schema=COUNT_SCHEMA)
            )
            is None
        )

    def test_before_tool_call_deeply_nested_argument(self):
        """Test that an argument too deeply nested to decode yields a verdict."""
        nested = "[" * 100000 + "]" * 100000
        event = ToolCallEvent(
            tool_name="collect", params={"items": nested}, schema={"properties": {"items": {"type": "array"}}}
        )

        assert self.engine.before_tool_call(event) is None
        stats = self.engine.statistics()
        assert stats.validated == 1
        assert stats.errors == 1
        assert stats.repaired == 0

    def test_before_tool_call_malformed_schema(self):
        """Test that an uninterpretable schema on the event is reported, not raised."""
        event = ToolCallEvent(tool_name="counter", params={"count": 1}, schema={"properties": {"count": "number"}})

        assert self.engine.before_tool_call(event) is None
        assert self.engine.statistics().errors == 1
        assert any("Invalid parameter schema" in m for m in self.messages)

    def test_before_tool_call_malformed_schema_strict(self):
        """Test that strict mode blocks a call whose schema cannot be read."""
        engine = ValidatorEngine(ValidatorConfig(strict_mode=True))
        event = ToolCallEvent(tool_name="counter", params={"count": 1}, schema=["not", "a", "schema"])

        result = engine.before_tool_call(event)

        assert result.block is True
        assert "Parameter schema must be an object" in result.block_reason

    def test_disabled_engine_passes_everything(self):
        """Test enabled=False."""
        engine = ValidatorEngine(ValidatorConfig(enabled=False))
        event = ToolCallEvent(tool_name="bash", params={"command": "ls; rm -rf /"})

        assert engine.before_tool_call(event) is None
        assert engine.statistics().validated == 0

    def test_after_tool_call_records_successes(self):
        """Test that only successful calls enter the known-name pool."""
        self.engine.after_tool_call(ToolCallEvent(tool_name="chroma_store"))
        self.engine.after_tool_call(ToolCallEvent(tool_name="broken_tool", error="boom"))
        self.engine.after_tool_call(ToolCallEvent(tool_name="chroma_store"))

        assert self.engine.known_tool_names() == ("chroma_store",)

    def test_concurrent_processing(self):
        """Test that counters stay exact under concurrent hooks."""
        engine = ValidatorEngine(ValidatorConfig(log_validation_errors=False))

        def worker(index):
            for i in range(100):
                engine.process(ToolInvocation("counter", {"count": "5"}), COUNT_SCHEMA)
                engine.record_tool_name(f"tool_{index}_{i % 5}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = engine.statistics()
        assert stats.validated == 800
        assert stats.repaired == 800
        assert stats.errors == 800
        assert len(engine.known_tool_names()) == 40
