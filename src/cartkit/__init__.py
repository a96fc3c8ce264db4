"""cartkit: deterministic classification trees for course-sized survey data."""

from loguru import logger

from cartkit.config import TreeConfig, TreeSettings
from cartkit.evaluation import ConfusionMatrix, Evaluation, accuracy, confusion_matrix, evaluate
from cartkit.exceptions import CartkitError, InvalidInputError, LengthMismatchError, SchemaMismatchError
from cartkit.loading import load_dataset
from cartkit.logging import PACKAGE_NAME, enable_logging
from cartkit.persistence import load_tree, save_tree
from cartkit.sampling import stratified_folds, stratified_split
from cartkit.schema import Dataset, Example, FeatureSpec, Schema
from cartkit.tree import (
    FittedTree,
    Prediction,
    build_tree,
    compute_feature_importance,
    extract_rules,
    predict,
    predict_many,
    render_tree,
)
from cartkit.tuning import TuningResult, tune_grid

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the cartkit package by default

__all__ = [
    "CartkitError",
    "ConfusionMatrix",
    "Dataset",
    "Evaluation",
    "Example",
    "FeatureSpec",
    "FittedTree",
    "InvalidInputError",
    "LengthMismatchError",
    "Prediction",
    "Schema",
    "SchemaMismatchError",
    "TreeConfig",
    "TreeSettings",
    "TuningResult",
    "accuracy",
    "build_tree",
    "compute_feature_importance",
    "confusion_matrix",
    "enable_logging",
    "evaluate",
    "extract_rules",
    "load_dataset",
    "load_tree",
    "predict",
    "predict_many",
    "render_tree",
    "save_tree",
    "stratified_folds",
    "stratified_split",
    "tune_grid",
]
