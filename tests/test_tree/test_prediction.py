"""Tests for prediction: routing, unseen levels, and schema mismatch errors."""

from __future__ import annotations

import math

import pytest
from pytest_check import check

from cartkit.config import TreeConfig
from cartkit.exceptions import SchemaMismatchError
from cartkit.schema import Dataset, Example, FeatureSpec, Schema
from cartkit.tree.building import build_tree
from cartkit.tree.models import FittedTree
from cartkit.tree.prediction import predict, predict_many


class TestPredict:
    """Tests for `predict`: walking a fitted tree to a leaf."""

    def test_numeric_routing(self) -> None:
        """Values at or below the threshold go left, values above it go right."""
        # Arrange
        tree = _make_numeric_tree()

        # Act
        low = predict(tree, (0.0,))
        boundary = predict(tree, (0.5,))
        high = predict(tree, (0.9,))

        # Assert
        with check:
            assert low.label == "A"
        with check:
            assert boundary.label == "A"
        with check:
            assert high.label == "B"
        with check:
            assert high.distribution == {"A": 0.0, "B": 1.0}

    def test_accepts_example_and_ignores_its_label(self) -> None:
        """An `Example` is routed by its features only."""
        tree = _make_numeric_tree()

        prediction = predict(tree, Example((1.0,), "A"))

        assert prediction.label == "B"

    def test_integer_values_accepted_for_numeric_features(self) -> None:
        """Plain integers are valid numeric feature values."""
        tree = _make_numeric_tree()

        assert predict(tree, [1]).label == "B"

    def test_categorical_routing(self) -> None:
        """The split level goes left; other declared levels go right."""
        # Arrange
        tree = _make_region_tree()

        # Act / Assert
        with check:
            assert predict(tree, ("north",)).label == "A"
        with check:
            assert predict(tree, ("south",)).label == "B"

    def test_unseen_level_goes_right(self) -> None:
        """A level never declared during training is routed to the right child."""
        tree = _make_region_tree()

        prediction = predict(tree, ("west",))

        assert prediction.label == "B"

    def test_returned_distribution_is_a_copy(self) -> None:
        """Mutating a returned distribution does not affect the tree."""
        tree = _make_numeric_tree()

        prediction = predict(tree, (0.0,))
        prediction.distribution["A"] = 0.0

        assert predict(tree, (0.0,)).distribution["A"] == 1.0


class TestPredictSchemaMismatch:
    """Tests for `predict` rejecting vectors that do not fit the tree's schema."""

    def test_wrong_arity_raises(self) -> None:
        """A vector with too many values raises SchemaMismatchError with both arities."""
        tree = _make_numeric_tree()

        with pytest.raises(SchemaMismatchError) as exc_info:
            predict(tree, (0.0, 1.0))

        with check:
            assert exc_info.value.expected_arity == 1
        with check:
            assert exc_info.value.actual_arity == 2
        with check:
            assert exc_info.value.feature is None

    def test_string_for_numeric_feature_raises(self) -> None:
        """A string where a number is expected names the offending feature."""
        tree = _make_numeric_tree()

        with pytest.raises(SchemaMismatchError) as exc_info:
            predict(tree, ("high",))

        assert exc_info.value.feature == "x"

    @pytest.mark.parametrize("value", [math.nan, math.inf, True, None])
    def test_non_finite_or_non_numeric_values_raise(self, value: object) -> None:
        """NaN, infinity, booleans and None are not valid numeric values."""
        tree = _make_numeric_tree()

        with pytest.raises(SchemaMismatchError):
            predict(tree, (value,))  # type: ignore[arg-type]

    def test_number_for_categorical_feature_raises(self) -> None:
        """A number where a level is expected raises SchemaMismatchError."""
        tree = _make_region_tree()

        with pytest.raises(SchemaMismatchError, match="region"):
            predict(tree, (3.0,))


class TestPredictMany:
    """Tests for `predict_many`."""

    def test_preserves_order(self) -> None:
        """Predictions come back in the order of the inputs."""
        tree = _make_numeric_tree()

        predictions = predict_many(tree, [(1.0,), (0.0,), (1.0,)])

        assert [p.label for p in predictions] == ["B", "A", "B"]

    def test_accepts_dataset(self) -> None:
        """A whole dataset can be predicted at once."""
        schema = Schema(features=(FeatureSpec(name="x", kind="numeric"),), labels=("A", "B"))
        dataset = Dataset.from_rows(schema, [((0,), "A"), ((1,), "B")])

        predictions = predict_many(_make_numeric_tree(), dataset)

        assert [p.label for p in predictions] == dataset.labels()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_numeric_tree() -> FittedTree:
    schema = Schema(features=(FeatureSpec(name="x", kind="numeric"),), labels=("A", "B"))
    dataset = Dataset.from_rows(schema, [((0,), "A")] * 4 + [((1,), "B")] * 4)
    return build_tree(dataset, TreeConfig(max_depth=1, min_n=1))


def _make_region_tree() -> FittedTree:
    schema = Schema(
        features=(FeatureSpec(name="region", kind="categorical", levels=("north", "south")),),
        labels=("A", "B"),
    )
    dataset = Dataset.from_rows(schema, [(("north",), "A")] * 3 + [(("south",), "B")] * 3)
    return build_tree(dataset, TreeConfig(max_depth=1, min_n=1))
