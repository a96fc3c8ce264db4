"""Tests for the impurity measures: impurity and impurity_from_counts."""

from __future__ import annotations

import math

import pytest
from pytest_check import check

from cartkit.tree.impurity import impurity, impurity_from_counts


class TestImpurity:
    """Tests for `impurity`: Gini and entropy over a collection of labels."""

    def test_empty_collection_is_pure(self) -> None:
        """An empty collection has impurity 0 under both criteria."""
        with check:
            assert impurity([], "gini") == 0.0
        with check:
            assert impurity([], "entropy") == 0.0

    def test_single_label_is_pure(self) -> None:
        """A collection holding one label has impurity 0 under both criteria."""
        labels = ["buyer"] * 7

        with check:
            assert impurity(labels, "gini") == 0.0
        with check:
            assert impurity(labels, "entropy") == 0.0

    def test_gini_of_balanced_binary_labels_is_one_half(self) -> None:
        """Two equally frequent labels give Gini impurity 0.5."""
        assert impurity(["A", "B", "A", "B"], "gini") == pytest.approx(0.5)

    def test_entropy_of_balanced_binary_labels_is_ln_two(self) -> None:
        """Two equally frequent labels give entropy ln(2) nats."""
        assert impurity(["A", "B", "A", "B"], "entropy") == pytest.approx(math.log(2))

    def test_gini_uneven_labels(self) -> None:
        """Gini impurity of a 3:1 split is 1 - (0.75^2 + 0.25^2) = 0.375."""
        assert impurity(["A", "A", "A", "B"]) == pytest.approx(0.375)

    @pytest.mark.parametrize("n_labels", [2, 3, 5, 8])
    def test_impurity_bounds_for_uniform_labels(self, n_labels: int) -> None:
        """Uniform labels reach the upper bounds: Gini 1 - 1/K and entropy ln(K)."""
        # Arrange
        labels = [f"label_{i}" for i in range(n_labels)] * 3

        # Act
        gini = impurity(labels, "gini")
        entropy = impurity(labels, "entropy")

        # Assert
        with check:
            assert gini == pytest.approx(1.0 - 1.0 / n_labels)
        with check:
            assert 0.0 <= gini < 1.0
        with check:
            assert entropy == pytest.approx(math.log(n_labels))


class TestImpurityFromCounts:
    """Tests for `impurity_from_counts`: impurity from per-label counts."""

    def test_zero_counts_are_ignored(self) -> None:
        """Zero counts for declared-but-absent labels do not change the impurity."""
        with check:
            assert impurity_from_counts([3, 0, 1]) == pytest.approx(impurity_from_counts([3, 1]))
        with check:
            assert impurity_from_counts([0, 4, 0], "entropy") == 0.0

    def test_all_zero_counts_are_pure(self) -> None:
        """Counts summing to zero describe an empty node with impurity 0."""
        assert impurity_from_counts([0, 0]) == 0.0

    def test_unknown_criterion_raises(self) -> None:
        """An unknown criterion name raises ValueError."""
        with pytest.raises(ValueError, match="Unknown impurity criterion"):
            impurity_from_counts([1, 1], "misclassification")  # type: ignore[arg-type]
