"""Human-readable views of a fitted tree: text dump, leaf rules, and feature importance."""

from __future__ import annotations

from collections import defaultdict

from cartkit.tree.models import (
    ClassificationRule,
    FittedTree,
    LeafNode,
    Predicate,
    SplitNode,
    TreeNode,
    iter_nodes,
)

THRESHOLD_DECIMAL_PLACES: int = 4  # Decimal places shown for numeric thresholds and probabilities.
_INDENT: str = "    "


# ---------------------------------------------------------------------------
# Public interface -- Tree dump
# ---------------------------------------------------------------------------


def render_tree(tree: FittedTree) -> str:
    """Render the tree as indented text, one line per node.

    Split lines show the left-branch test, sample count and impurity; leaf
    lines show the predicted label, sample count and label distribution.

    Args:
        tree (FittedTree): The fitted tree.

    Returns:
        str: The rendered tree, e.g.::

            age <= 34.5  (n=200, gini=0.4800)
                yes: leaf buyer  (n=80, buyer=0.9000, non_buyer=0.1000)
                no: leaf non_buyer  (n=120, buyer=0.2000, non_buyer=0.8000)
    """
    criterion = tree.config.criterion
    lines: list[str] = []
    _render_node(tree.root, lines, prefix="", depth=0, criterion=criterion)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Public interface -- Rule extraction
# ---------------------------------------------------------------------------


def extract_rules(tree: FittedTree) -> list[ClassificationRule]:
    """Extract one rule per leaf, left-most leaf first.

    Each rule lists the branch conditions from the root to the leaf. Every
    possible feature vector satisfies exactly one rule.

    Args:
        tree (FittedTree): The fitted tree.

    Returns:
        list[ClassificationRule]: The rules, with `len == tree.leaf_count`.
    """
    rules: list[ClassificationRule] = []
    _walk_tree(tree.root, path_predicates=[], rules=rules)
    return rules


# ---------------------------------------------------------------------------
# Public interface -- Feature importance
# ---------------------------------------------------------------------------


def compute_feature_importance(tree: FittedTree) -> dict[str, float]:
    """Compute each feature's share of the tree's total impurity reduction.

    A split's contribution is its impurity reduction weighted by the fraction
    of training examples reaching it. Features with zero importance are
    omitted; the remaining scores are rounded to 4 decimals, sorted in
    descending order, and the smallest is adjusted so they sum to 1.0. The
    adjustment never takes a score below zero.

    Args:
        tree (FittedTree): The fitted tree.

    Returns:
        dict[str, float]: Feature name to importance. Empty for a tree
            without splits.
    """
    totals: defaultdict[str, float] = defaultdict(float)
    for node in iter_nodes(tree.root):
        if isinstance(node, SplitNode):
            totals[node.feature] += (node.samples / tree.n_samples) * node.impurity_decrease

    filtered = [(name, importance) for name, importance in totals.items() if importance > 0.0]
    grand_total = sum(importance for _, importance in filtered)
    if not filtered:
        return {}
    normalized = [(name, round(importance / grand_total, 4)) for name, importance in filtered]
    normalized.sort(key=lambda item: item[1], reverse=True)
    others_sum = sum(importance for _, importance in normalized[:-1])
    normalized[-1] = (normalized[-1][0], max(0.0, round(1.0 - others_sum, 4)))
    # The adjusted last entry may now outrank its neighbours.
    normalized.sort(key=lambda item: item[1], reverse=True)
    return dict(normalized)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _walk_tree(node: TreeNode, *, path_predicates: list[Predicate], rules: list[ClassificationRule]) -> None:
    """Recursively walk `node`, appending one rule per leaf to `rules`."""
    if isinstance(node, LeafNode):
        rules.append(
            ClassificationRule(
                predicates=path_predicates,
                prediction=node.label,
                samples=node.samples,
                confidence=node.distribution[node.label],
                distribution=dict(node.distribution),
            )
        )
        return

    left_predicate, right_predicate = node.predicates()
    _walk_tree(node.left, path_predicates=[*path_predicates, left_predicate], rules=rules)
    _walk_tree(node.right, path_predicates=[*path_predicates, right_predicate], rules=rules)


def _render_node(node: TreeNode, lines: list[str], *, prefix: str, depth: int, criterion: str) -> None:
    indent = _INDENT * depth
    if isinstance(node, LeafNode):
        distribution = ", ".join(
            f"{label}={probability:.{THRESHOLD_DECIMAL_PLACES}f}" for label, probability in node.distribution.items()
        )
        lines.append(f"{indent}{prefix}leaf {node.label}  (n={node.samples}, {distribution})")
        return

    left_predicate, _ = node.predicates()
    value = left_predicate.value
    shown = round(value, THRESHOLD_DECIMAL_PLACES) if isinstance(value, float) else value
    lines.append(
        f"{indent}{prefix}{node.feature} {left_predicate.operator} {shown}  "
        f"(n={node.samples}, {criterion}={node.impurity:.{THRESHOLD_DECIMAL_PLACES}f})"
    )
    _render_node(node.left, lines, prefix="yes: ", depth=depth + 1, criterion=criterion)
    _render_node(node.right, lines, prefix="no: ", depth=depth + 1, criterion=criterion)
