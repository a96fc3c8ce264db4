"""Classification tree sub-package: models, impurity, split search, building, prediction, and export."""

from __future__ import annotations

from cartkit.tree.building import build_tree
from cartkit.tree.export import compute_feature_importance, extract_rules, render_tree
from cartkit.tree.impurity import impurity, impurity_from_counts
from cartkit.tree.models import (
    ClassificationRule,
    FittedTree,
    LeafNode,
    Prediction,
    Predicate,
    PredicateOp,
    SplitNode,
    TreeNode,
)
from cartkit.tree.prediction import predict, predict_many
from cartkit.tree.splitting import SplitCandidate, find_best_split

__all__ = [
    "ClassificationRule",
    "FittedTree",
    "LeafNode",
    "Predicate",
    "PredicateOp",
    "Prediction",
    "SplitCandidate",
    "SplitNode",
    "TreeNode",
    "build_tree",
    "compute_feature_importance",
    "extract_rules",
    "find_best_split",
    "impurity",
    "impurity_from_counts",
    "predict",
    "predict_many",
    "render_tree",
]
