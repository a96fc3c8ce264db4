"""Tests for the tree models: node validation, predicates, rules, and tree properties."""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from pytest_check import check

from cartkit.config import TreeConfig
from cartkit.schema import FeatureSpec, Schema
from cartkit.tree.models import ClassificationRule, FittedTree, LeafNode, Predicate, SplitNode, iter_nodes


class TestPredicate:
    """Tests for `Predicate` validation, formatting and evaluation."""

    @pytest.mark.parametrize(
        ("operator", "value", "x", "expected"),
        [
            ("<=", 34.5, 34.5, True),
            ("<=", 34.5, 35.0, False),
            (">", 34.5, 35.0, True),
            ("==", "north", "north", True),
            ("!=", "north", "south", True),
            ("!=", "north", "north", False),
        ],
    )
    def test_eval(self, operator: str, value: float | str, x: float | str, expected: bool) -> None:
        """Each operator compares the feature value against the predicate value."""
        predicate = Predicate(variable="f", operator=operator, value=value)  # type: ignore[arg-type]

        assert predicate.eval(x) is expected

    def test_str(self) -> None:
        """A predicate renders as `variable operator value`."""
        assert str(Predicate(variable="region", operator="==", value="north")) == "region == north"

    def test_ordering_operator_with_string_value_raises(self) -> None:
        """`<=` and `>` only accept numeric values."""
        with pytest.raises(ValidationError, match="requires a numeric value"):
            Predicate(variable="region", operator="<=", value="north")

    def test_unknown_operator_raises(self) -> None:
        """Operators outside the four supported ones are rejected."""
        with pytest.raises(ValidationError):
            Predicate(variable="age", operator=">=", value=3.0)  # type: ignore[arg-type]


class TestClassificationRule:
    """Tests for `ClassificationRule`."""

    def test_matches_requires_every_predicate(self) -> None:
        """A rule matches only when all its predicates hold."""
        # Arrange
        rule = ClassificationRule(
            predicates=[
                Predicate(variable="age", operator="<=", value=30.0),
                Predicate(variable="region", operator="==", value="south"),
            ],
            prediction="buyer",
            samples=5,
            confidence=0.8,
            distribution={"browser": 0.2, "buyer": 0.8},
        )

        # Act / Assert
        with check:
            assert rule.matches({"age": 25.0, "region": "south"})
        with check:
            assert not rule.matches({"age": 25.0, "region": "north"})
        with check:
            assert not rule.matches({"age": 40.0, "region": "south"})

    def test_str(self) -> None:
        """A rule renders its conditions joined with AND."""
        rule = ClassificationRule(
            predicates=[Predicate(variable="age", operator=">", value=30.0)],
            prediction="browser",
            samples=12,
            confidence=0.75,
            distribution={"browser": 0.75, "buyer": 0.25},
        )

        assert str(rule) == "IF age > 30.0 THEN browser (confidence=0.75, n=12)"


class TestSplitNode:
    """Tests for `SplitNode` validation and routing."""

    def test_threshold_and_level_are_mutually_exclusive(self) -> None:
        """Setting both or neither of threshold and level is rejected."""
        with check, pytest.raises(ValidationError, match="Exactly one"):
            _split(threshold=1.0, level="north")
        with check, pytest.raises(ValidationError, match="Exactly one"):
            _split(threshold=None, level=None)

    def test_numeric_goes_left(self) -> None:
        """Numeric splits send values at or below the threshold left."""
        node = _split(threshold=2.5, level=None)

        with check:
            assert node.goes_left(2.5)
        with check:
            assert not node.goes_left(2.6)

    def test_categorical_goes_left(self) -> None:
        """Categorical splits send only the split level left."""
        node = _split(threshold=None, level="north")

        with check:
            assert node.goes_left("north")
        with check:
            assert not node.goes_left("west")

    def test_predicates_are_complementary(self) -> None:
        """The left and right predicates of a categorical split use == and !=."""
        left, right = _split(threshold=None, level="north").predicates()

        with check:
            assert (left.operator, right.operator) == ("==", "!=")
        with check:
            assert left.value == right.value == "north"


class TestFittedTree:
    """Tests for `FittedTree` structural properties and serialization."""

    def test_structural_properties(self) -> None:
        """Depth, leaf count and node count describe the tree shape."""
        # Arrange
        inner = _split(threshold=1.0, level=None)
        root = SplitNode(
            feature_index=0,
            feature="x",
            threshold=5.0,
            left=inner,
            right=_leaf("B", samples=3),
            samples=7,
            impurity=0.5,
            impurity_decrease=0.2,
        )

        # Act
        tree = _fitted(root, n_samples=7)

        # Assert
        with check:
            assert tree.depth == 2
        with check:
            assert tree.leaf_count == 3
        with check:
            assert tree.node_count == 5
        with check:
            assert [node.kind for node in iter_nodes(tree.root)] == ["split", "split", "leaf", "leaf", "leaf"]

    def test_single_leaf_tree(self) -> None:
        """A tree that is one leaf has depth 0 and one node."""
        tree = _fitted(_leaf("A", samples=4), n_samples=4)

        with check:
            assert tree.depth == 0
        with check:
            assert tree.node_count == tree.leaf_count == 1

    def test_json_round_trip_keeps_node_kinds(self) -> None:
        """Serialized trees validate back into equal models with the right node types."""
        tree = _fitted(_split(threshold=1.0, level=None), n_samples=4)

        restored = FittedTree.model_validate_json(tree.model_dump_json())

        with check:
            assert restored == tree
        with check:
            assert isinstance(restored.root, SplitNode)
        with check:
            assert isinstance(restored.root.left, LeafNode)

    def test_is_frozen(self) -> None:
        """Fitted trees cannot be mutated."""
        tree = _fitted(_leaf("A", samples=4), n_samples=4)

        with pytest.raises(ValidationError):
            tree.n_samples = 10  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _leaf(label: str, *, samples: int) -> LeafNode:
    other = "B" if label == "A" else "A"
    return LeafNode(
        label=label,
        counts={label: samples, other: 0},
        distribution={label: 1.0, other: 0.0},
        samples=samples,
        impurity=0.0,
    )


def _split(*, threshold: float | None, level: str | None) -> SplitNode:
    return SplitNode(
        feature_index=0,
        feature="x",
        threshold=threshold,
        level=level,
        left=_leaf("A", samples=2),
        right=_leaf("B", samples=2),
        samples=4,
        impurity=0.5,
        impurity_decrease=0.5,
    )


def _fitted(root: LeafNode | SplitNode, *, n_samples: int) -> FittedTree:
    schema = Schema(features=(FeatureSpec(name="x", kind="numeric"),), labels=("A", "B"))
    return FittedTree(root=root, feature_schema=schema, config=TreeConfig(), n_samples=n_samples)
