"""Recursive growth of a binary classification tree from a training dataset."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from cartkit.config import TreeConfig
from cartkit.exceptions import InvalidInputError
from cartkit.logging import FIT_LEVEL
from cartkit.schema import Dataset, Example, Schema
from cartkit.tree.impurity import impurity_from_counts
from cartkit.tree.models import FittedTree, LeafNode, SplitNode, TreeNode
from cartkit.tree.splitting import find_best_split

# ---------------------------------------------------------------------------
# Public interface -- Tree building
# ---------------------------------------------------------------------------


def build_tree(dataset: Dataset, config: TreeConfig | None = None) -> FittedTree:
    """Grow a classification tree on `dataset`.

    Starting at depth 0, each node becomes a leaf when the first of these
    holds: its examples are pure, it sits at `config.max_depth`, the node
    budget (`config.max_nodes`) has no room for two more nodes, or no split
    gives both children at least `config.min_n` examples. Otherwise the best
    split is taken and both children are grown at depth + 1.

    Building twice from the same dataset and config yields identical trees.

    Args:
        dataset (Dataset): Training data.
        config (TreeConfig | None): Hyperparameters. Defaults to
            `TreeConfig()` (`max_depth=30`, `min_n=20`, Gini impurity).

    Returns:
        FittedTree: The fitted tree.

    Raises:
        InvalidInputError: If `dataset` is empty or its schema has no features.

    Examples:
        >>> from cartkit.schema import FeatureSpec
        >>> schema = Schema(features=(FeatureSpec(name="x", kind="numeric"),), labels=("A", "B"))
        >>> data = Dataset.from_rows(schema, [((0,), "A")] * 4 + [((1,), "B")] * 4)
        >>> tree = build_tree(data, TreeConfig(max_depth=1, min_n=1))
        >>> tree.root.threshold, tree.leaf_count
        (0.5, 2)
    """
    config = config if config is not None else TreeConfig()
    if len(dataset) == 0:
        raise InvalidInputError("Cannot build a tree from an empty training set")
    if dataset.schema.arity == 0:
        raise InvalidInputError("Cannot build a tree from a schema with no features")

    logger.log(
        FIT_LEVEL,
        "Building tree",
        n_samples=len(dataset),
        n_features=dataset.schema.arity,
        max_depth=config.max_depth,
        min_n=config.min_n,
        criterion=config.criterion,
    )
    growth = _Growth(schema=dataset.schema, config=config)
    root = growth.grow(dataset.examples, depth=0)
    tree = FittedTree(root=root, feature_schema=dataset.schema, config=config, n_samples=len(dataset))
    logger.log(FIT_LEVEL, "Tree built", depth=tree.depth, leaf_count=tree.leaf_count, node_count=tree.node_count)
    return tree


def make_leaf(examples: Sequence[Example], schema: Schema, config: TreeConfig) -> LeafNode:
    """Summarize `examples` as a leaf over the schema's full label set.

    The predicted label is the most frequent one; ties go to the label
    declared first in the schema.

    Args:
        examples (Sequence[Example]): Training examples reaching the leaf.
        schema (Schema): Schema declaring the label order.
        config (TreeConfig): Supplies the impurity criterion.

    Returns:
        LeafNode: The leaf.
    """
    observed = Counter(example.label for example in examples)
    counts = {label: observed.get(label, 0) for label in schema.labels}
    total = len(examples)
    # max() keeps the first maximal element, i.e. the earliest declared label.
    label = max(schema.labels, key=lambda candidate: counts[candidate])
    return LeafNode(
        label=label,
        counts=counts,
        distribution={name: count / total for name, count in counts.items()},
        samples=total,
        impurity=impurity_from_counts(counts.values(), config.criterion),
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


@dataclass
class _Growth:
    """Per-build state: the schema, the config and the running node count."""

    schema: Schema
    config: TreeConfig
    node_count: int = 1  # the root
    budget_exhausted: bool = False

    def grow(self, examples: tuple[Example, ...], depth: int) -> TreeNode:
        """Return the subtree grown from `examples` at `depth`."""
        leaf = make_leaf(examples, self.schema, self.config)
        if leaf.impurity == 0.0:
            return leaf
        if depth >= self.config.max_depth:
            return leaf
        if not self._has_room_for_split():
            return leaf

        split = find_best_split(examples, self.schema, min_n=self.config.min_n, criterion=self.config.criterion)
        if split is None:
            return leaf

        self.node_count += 2
        spec = self.schema.features[split.feature_index]
        logger.debug(
            "Splitting node",
            depth=depth,
            feature=spec.name,
            threshold=split.threshold,
            level=split.level,
            n_left=len(split.left),
            n_right=len(split.right),
            reduction=round(split.reduction, 6),
        )
        return SplitNode(
            feature_index=split.feature_index,
            feature=spec.name,
            threshold=split.threshold,
            level=split.level,
            left=self.grow(split.left, depth + 1),
            right=self.grow(split.right, depth + 1),
            samples=len(examples),
            impurity=leaf.impurity,
            impurity_decrease=split.reduction,
        )

    def _has_room_for_split(self) -> bool:
        max_nodes = self.config.max_nodes
        if max_nodes is None or self.node_count + 2 <= max_nodes:
            return True
        if not self.budget_exhausted:
            self.budget_exhausted = True
            logger.warning("Node budget exhausted; remaining nodes become leaves", max_nodes=max_nodes)
        return False
