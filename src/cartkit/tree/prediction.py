"""Routing examples through a fitted tree to obtain predictions."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger

from cartkit.exceptions import SchemaMismatchError
from cartkit.schema import Example, FeatureValue, Schema, is_finite_number
from cartkit.tree.models import FittedTree, LeafNode, Prediction, SplitNode


def predict(tree: FittedTree, example: Example | Sequence[FeatureValue]) -> Prediction:
    """Predict the label and class distribution of one example.

    The example walks from the root, going left when the split test holds
    and right otherwise, until it reaches a leaf. Categorical levels the tree
    never saw during training always go right.

    Args:
        tree (FittedTree): The fitted tree.
        example (Example | Sequence[FeatureValue]): An `Example` (its label is
            ignored) or a bare feature vector in schema order.

    Returns:
        Prediction: The reached leaf's label and distribution.

    Raises:
        SchemaMismatchError: If the feature vector has the wrong length, or a
            value has the wrong type for its feature.
    """
    values = example.features if isinstance(example, Example) else tuple(example)
    _check_vector(tree.feature_schema, values)

    node = tree.root
    while isinstance(node, SplitNode):
        value = values[node.feature_index]
        if node.level is not None and value not in tree.feature_schema.features[node.feature_index].levels:
            logger.debug("Routing unseen level to the right child", feature=node.feature, value=value)
        node = node.left if node.goes_left(value) else node.right
    return _leaf_prediction(node)


def predict_many(tree: FittedTree, examples: Iterable[Example | Sequence[FeatureValue]]) -> list[Prediction]:
    """Predict every example in `examples`, preserving order.

    Args:
        tree (FittedTree): The fitted tree.
        examples (Iterable[Example | Sequence[FeatureValue]]): Examples or
            bare feature vectors, e.g. a `Dataset`.

    Returns:
        list[Prediction]: One prediction per example.

    Raises:
        SchemaMismatchError: If any example does not fit the tree's schema.
    """
    return [predict(tree, example) for example in examples]


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _check_vector(schema: Schema, values: Sequence[FeatureValue]) -> None:
    """Raise `SchemaMismatchError` unless `values` fits `schema`'s arity and kinds."""
    if len(values) != schema.arity:
        raise SchemaMismatchError(expected_arity=schema.arity, actual_arity=len(values))
    for spec, value in zip(schema.features, values, strict=True):
        if spec.kind == "numeric" and not is_finite_number(value):
            raise SchemaMismatchError(
                expected_arity=schema.arity,
                actual_arity=len(values),
                feature=spec.name,
                reason=f"expected a finite number, got {value!r}",
            )
        if spec.kind == "categorical" and not isinstance(value, str):
            raise SchemaMismatchError(
                expected_arity=schema.arity,
                actual_arity=len(values),
                feature=spec.name,
                reason=f"expected a category level, got {value!r}",
            )


def _leaf_prediction(leaf: LeafNode) -> Prediction:
    return Prediction(label=leaf.label, distribution=dict(leaf.distribution))
