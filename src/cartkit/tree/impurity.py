"""Impurity measures over class label counts."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable

from cartkit.config import Criterion


def impurity(labels: Iterable[str], criterion: Criterion = "gini") -> float:
    """Return the impurity of a collection of labels.

    Args:
        labels (Iterable[str]): Class labels of the examples at a node.
        criterion (Criterion): `"gini"` for Gini impurity, in `[0, 1)`, or
            `"entropy"` for Shannon entropy in nats, in `[0, ln K]` for K
            distinct labels.

    Returns:
        float: The impurity; 0.0 for an empty or pure collection.

    Examples:
        >>> impurity(["A", "A", "B", "B"])
        0.5
        >>> impurity(["A", "A"], "entropy")
        0.0
        >>> impurity([])
        0.0
    """
    return impurity_from_counts(Counter(labels).values(), criterion)


def impurity_from_counts(counts: Iterable[int], criterion: Criterion = "gini") -> float:
    """Return the impurity of a node given its per-label counts.

    Zero counts are ignored, so counts over the full declared label set and
    counts over the observed labels give the same result.

    Args:
        counts (Iterable[int]): Number of examples per label.
        criterion (Criterion): `"gini"` or `"entropy"`.

    Returns:
        float: The impurity; 0.0 when the counts sum to zero.

    Raises:
        ValueError: If `criterion` is not a known impurity measure.
    """
    positive = [count for count in counts if count > 0]
    total = sum(positive)
    if total == 0:
        return 0.0
    if criterion == "gini":
        return 1.0 - sum((count / total) ** 2 for count in positive)
    if criterion == "entropy":
        return -sum((count / total) * math.log(count / total) for count in positive) + 0.0
    raise ValueError(f"Unknown impurity criterion: {criterion!r}")
