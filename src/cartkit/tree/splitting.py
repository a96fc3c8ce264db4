"""Exhaustive search for the best binary split of a node's examples.

Numeric features are scanned in one sorted sweep per feature, moving
examples from the right partition to the left while keeping running label
counts, so every midpoint threshold is scored without re-partitioning.
Categorical features are split one level against the rest.

Ties between equally good splits are resolved by scan order: features in
schema order, thresholds ascending, levels in declared order. The first
candidate seen keeps its place unless a later one is better by more than
`_TIE_TOLERANCE`.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from cartkit.config import Criterion
from cartkit.schema import Example, FeatureSpec, Schema
from cartkit.tree.impurity import impurity_from_counts

_TIE_TOLERANCE: float = 1e-12  # Reductions closer than this are treated as equal.


@dataclass(frozen=True)
class SplitCandidate:
    """A scored binary split of a node's examples.

    Attributes:
        feature_index (int): Position of the split feature in the schema.
        threshold (float | None): Midpoint threshold for numeric features;
            `value <= threshold` goes left.
        level (str | None): Level for categorical features; `value == level`
            goes left.
        impurity (float): Size-weighted impurity of the two partitions.
        reduction (float): Parent impurity minus `impurity`.
        left (tuple[Example, ...]): Examples sent left, in input order.
        right (tuple[Example, ...]): Examples sent right, in input order.
    """

    feature_index: int
    threshold: float | None
    level: str | None
    impurity: float
    reduction: float
    left: tuple[Example, ...]
    right: tuple[Example, ...]


@dataclass(frozen=True)
class _Score:
    """Position and quality of the best split seen so far, before partitions are materialized."""

    feature_index: int
    threshold: float | None
    level: str | None
    impurity: float


def find_best_split(
    examples: Sequence[Example],
    schema: Schema,
    *,
    min_n: int,
    criterion: Criterion = "gini",
) -> SplitCandidate | None:
    """Find the split of `examples` with the largest impurity reduction.

    Args:
        examples (Sequence[Example]): Examples at the node being split.
        schema (Schema): Schema of the examples; every feature is searched.
        min_n (int): Minimum number of examples each partition must hold.
        criterion (Criterion): Impurity measure used to score splits.

    Returns:
        SplitCandidate | None: The best split, or `None` when the node is
            pure or no split leaves at least `min_n` examples on each side.

    Examples:
        >>> schema = Schema(features=(FeatureSpec(name="x", kind="numeric"),), labels=("A", "B"))
        >>> rows = [Example((0.0,), "A"), Example((0.0,), "A"), Example((1.0,), "B"), Example((1.0,), "B")]
        >>> best = find_best_split(rows, schema, min_n=1)
        >>> best.threshold, best.reduction
        (0.5, 0.5)
    """
    parent_counts = Counter(example.label for example in examples)
    parent_impurity = impurity_from_counts(parent_counts.values(), criterion)
    if parent_impurity == 0.0:
        return None

    best: _Score | None = None
    for feature_index, spec in enumerate(schema.features):
        if spec.kind == "numeric":
            candidate = _best_numeric_split(examples, feature_index, parent_counts, min_n=min_n, criterion=criterion)
        else:
            candidate = _best_categorical_split(
                examples, feature_index, spec, parent_counts, min_n=min_n, criterion=criterion
            )
        if candidate is not None and (best is None or candidate.impurity < best.impurity - _TIE_TOLERANCE):
            best = candidate

    if best is None:
        return None
    return _materialize(best, examples, parent_impurity)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _best_numeric_split(
    examples: Sequence[Example],
    feature_index: int,
    parent_counts: Counter[str],
    *,
    min_n: int,
    criterion: Criterion,
) -> _Score | None:
    """Sweep the sorted values of one numeric feature and score every midpoint threshold."""
    ordered = sorted(examples, key=lambda example: example.features[feature_index])
    total = len(ordered)
    left_counts: Counter[str] = Counter()
    right_counts = Counter(parent_counts)
    best: _Score | None = None

    for position in range(total - 1):
        example = ordered[position]
        left_counts[example.label] += 1
        right_counts[example.label] -= 1

        value = example.features[feature_index]
        next_value = ordered[position + 1].features[feature_index]
        if value == next_value:
            continue
        n_left = position + 1
        n_right = total - n_left
        if n_left < min_n or n_right < min_n:
            continue

        weighted = _weighted_impurity(left_counts, n_left, right_counts, n_right, criterion)
        if best is None or weighted < best.impurity - _TIE_TOLERANCE:
            threshold = _midpoint(float(value), float(next_value))
            best = _Score(feature_index=feature_index, threshold=threshold, level=None, impurity=weighted)
    return best


def _best_categorical_split(
    examples: Sequence[Example],
    feature_index: int,
    spec: FeatureSpec,
    parent_counts: Counter[str],
    *,
    min_n: int,
    criterion: Criterion,
) -> _Score | None:
    """Score every observed level of one categorical feature against the rest."""
    counts_by_level: dict[str, Counter[str]] = {}
    for example in examples:
        level = str(example.features[feature_index])
        counts_by_level.setdefault(level, Counter())[example.label] += 1

    total = len(examples)
    best: _Score | None = None
    for level in spec.levels:
        left_counts = counts_by_level.get(level)
        if left_counts is None:
            continue
        n_left = left_counts.total()
        n_right = total - n_left
        if n_left < min_n or n_right < min_n:
            continue

        right_counts = parent_counts - left_counts
        weighted = _weighted_impurity(left_counts, n_left, right_counts, n_right, criterion)
        if best is None or weighted < best.impurity - _TIE_TOLERANCE:
            best = _Score(feature_index=feature_index, threshold=None, level=level, impurity=weighted)
    return best


def _midpoint(low: float, high: float) -> float:
    """Return a threshold `t` with `low <= t < high`, halfway between them when representable.

    Halving the gap rather than the sum keeps the result finite for values
    near the float maximum. Adjacent floats have no value strictly between
    them, so rounding may land on `high`; `low` is used instead.
    """
    threshold = low + (high - low) / 2.0
    if not low <= threshold < high:
        return low
    return threshold


def _weighted_impurity(
    left_counts: Counter[str],
    n_left: int,
    right_counts: Counter[str],
    n_right: int,
    criterion: Criterion,
) -> float:
    total = n_left + n_right
    left_impurity = impurity_from_counts(left_counts.values(), criterion)
    right_impurity = impurity_from_counts(right_counts.values(), criterion)
    return (n_left / total) * left_impurity + (n_right / total) * right_impurity


def _materialize(score: _Score, examples: Sequence[Example], parent_impurity: float) -> SplitCandidate:
    """Partition `examples` according to the winning split and package the result."""
    left: list[Example] = []
    right: list[Example] = []
    for example in examples:
        value = example.features[score.feature_index]
        if score.threshold is not None:
            goes_left = value <= score.threshold  # type: ignore[operator]
        else:
            goes_left = value == score.level
        (left if goes_left else right).append(example)

    return SplitCandidate(
        feature_index=score.feature_index,
        threshold=score.threshold,
        level=score.level,
        impurity=score.impurity,
        reduction=max(0.0, parent_impurity - score.impurity),
        left=tuple(left),
        right=tuple(right),
    )
