"""Tests for error types and codes."""

import pytest

from semtag.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    OntologyError,
    SemTagError,
    StoreError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.ONTOLOGY_CYCLE, 3000),
            (ErrorCode.ONTOLOGY_UNKNOWN_PARENT, 3000),
            (ErrorCode.STORE_BUSY, 4000),
            (ErrorCode.INTERNAL_ERROR, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        assert expected_range <= code.value < expected_range + 1000


class TestSemTagError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        # Given
        error = SemTagError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            retryable=True,
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "retryable": True,
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_includes_code_and_name(self) -> None:
        error = InternalError.unexpected("boom")
        assert str(error) == "[9001] INTERNAL_ERROR: Internal error: boom"

    def test_given_subclass_error_when_raised_then_caught_as_base(self) -> None:
        with pytest.raises(SemTagError):
            raise StoreError.not_found("analysis", "7")


class TestOntologyError:
    def test_given_cycle_path_when_created_then_message_joins_path(self) -> None:
        # Given
        path = ["a", "b", "a"]

        # When
        error = OntologyError.cycle(path)

        # Then
        assert error.code == ErrorCode.ONTOLOGY_CYCLE
        assert "a -> b -> a" in error.message
        assert error.details == {"path": path}

    def test_given_unknown_parent_when_created_then_details_name_both_ids(self) -> None:
        error = OntologyError.unknown_parent("child", "ghost")
        assert error.details == {"tag_id": "child", "parent_id": "ghost"}
        assert not error.retryable


class TestStoreError:
    def test_given_busy_when_created_then_retryable(self) -> None:
        error = StoreError.busy(attempts=4, reason="database is locked")
        assert error.retryable
        assert error.details["attempts"] == 4

    def test_given_config_error_when_invalid_value_then_value_stringified(self) -> None:
        error = ConfigError.invalid_value("queue.batch_size", 0, "must be >= 1")
        assert error.details == {"field": "queue.batch_size", "value": "0", "reason": "must be >= 1"}
