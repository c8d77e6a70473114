"""Tests for config models."""

import pytest
from pydantic import ValidationError

from semtag.config.models import (
    AutoApplyConfig,
    DatabaseConfig,
    EngineConfig,
    LogOutputConfig,
    QueueConfig,
    SemanticTuningParams,
    SemTagConfig,
)


class TestSemanticTuningParams:
    def test_given_defaults_when_created_then_documented_values(self) -> None:
        params = SemanticTuningParams()
        assert params.enabled is True
        assert params.tag_threshold == 0.3
        assert params.sibling_lambda == 0.35
        assert params.up_beta == 0.55
        assert params.down_gamma == 0.18
        assert params.target_avg_tags == 6

    @pytest.mark.parametrize(
        ("field", "value", "expected"),
        [
            ("tag_threshold", 0.01, 0.15),
            ("tag_threshold", 0.99, 0.65),
            ("sibling_lambda", -1.0, 0.0),
            ("sibling_lambda", 2.0, 0.75),
            ("up_beta", 0.0, 0.15),
            ("up_beta", 1.5, 0.9),
            ("down_gamma", 0.9, 0.6),
            ("target_avg_tags", 40, 12),
            ("target_avg_tags", 0, 2),
        ],
    )
    def test_given_out_of_range_value_when_created_then_clamped(
        self, field: str, value: float, expected: float
    ) -> None:
        params = SemanticTuningParams(**{field: value})
        assert getattr(params, field) == expected


class TestValidation:
    def test_given_relative_log_file_when_created_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="relative/semtag.log")

    def test_given_negative_retries_when_created_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseConfig(max_retries=-1)

    def test_given_zero_batch_size_when_created_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QueueConfig(batch_size=0)

    def test_given_zero_top_k_when_created_then_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EngineConfig(top_k=0)

    def test_given_zero_max_tags_when_created_then_raised_to_one(self) -> None:
        assert AutoApplyConfig(max_tags=0).max_tags == 1


def test_root_config_has_every_section() -> None:
    config = SemTagConfig()
    assert set(SemTagConfig.model_fields) == {"logging", "database", "engine", "tuning", "queue", "auto_apply"}
    assert config.engine.model_id == "deterministic-embed-v1"
