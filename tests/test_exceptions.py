"""Tests for custom exceptions.

This module tests the exception classes raised for unusable inputs, schema
mismatches at prediction time, and mismatched evaluation sequences, ensuring
proper inheritance, attribute storage, and catchability patterns.
"""

from __future__ import annotations

import pytest
from pytest_check import check

from cartkit.exceptions import CartkitError, InvalidInputError, LengthMismatchError, SchemaMismatchError


class TestExceptionHierarchy:
    """Tests for the shared base classes of every cartkit exception."""

    @pytest.mark.parametrize(
        "error",
        [
            InvalidInputError("Training dataset is empty"),
            SchemaMismatchError(expected_arity=3, actual_arity=2),
            LengthMismatchError(predictions_length=4, truths_length=5),
        ],
        ids=["invalid-input", "schema-mismatch", "length-mismatch"],
    )
    def test_catchable_as_cartkit_error_and_value_error(self, error: CartkitError) -> None:
        """Verify each exception can be caught via CartkitError and ValueError.

        Callers can handle every cartkit failure with one `except CartkitError`
        clause, and generic `except ValueError` handlers still apply.
        """
        with check, pytest.raises(CartkitError):
            raise error
        with check, pytest.raises(ValueError):  # noqa: PT011
            raise error

    def test_exception_types_are_distinct(self) -> None:
        """Verify the three exception types do not subclass one another."""
        with check:
            assert not issubclass(SchemaMismatchError, InvalidInputError)
        with check:
            assert not issubclass(LengthMismatchError, InvalidInputError)
        with check:
            assert not issubclass(SchemaMismatchError, LengthMismatchError)


class TestSchemaMismatchError:
    """Tests for SchemaMismatchError."""

    def test_arity_message_and_attributes(self) -> None:
        """Verify an arity mismatch stores both arities and reports them."""
        error = SchemaMismatchError(expected_arity=3, actual_arity=2)

        with check:
            assert str(error) == "Expected 3 feature values, got 2"
        with check:
            assert (error.expected_arity, error.actual_arity) == (3, 2)
        with check:
            assert error.feature is None

    def test_feature_message_names_feature_and_reason(self) -> None:
        """Verify a per-feature mismatch reports the feature and the reason."""
        error = SchemaMismatchError(
            expected_arity=2,
            actual_arity=2,
            feature="age",
            reason="expected a finite number, got 'old'",
        )

        with check:
            assert str(error) == "Feature 'age' does not match the schema: expected a finite number, got 'old'"
        with check:
            assert error.feature == "age"


class TestLengthMismatchError:
    """Tests for LengthMismatchError."""

    def test_message_and_attributes(self) -> None:
        """Verify both lengths are stored and reported."""
        error = LengthMismatchError(predictions_length=4, truths_length=5)

        with check:
            assert str(error) == "Got 4 predictions but 5 true labels"
        with check:
            assert error.predictions_length == 4
        with check:
            assert error.truths_length == 5
