"""Cross-validated grid search over tree depth and minimum node size."""

from __future__ import annotations

import itertools
import statistics
from collections.abc import Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from cartkit.config import TreeConfig
from cartkit.evaluation import accuracy
from cartkit.exceptions import InvalidInputError
from cartkit.logging import FIT_LEVEL
from cartkit.sampling import stratified_folds
from cartkit.schema import Dataset
from cartkit.tree.building import build_tree
from cartkit.tree.prediction import predict_many

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class TuningScore(BaseModel):
    """Cross-validated accuracy of one hyperparameter combination.

    Attributes:
        config (TreeConfig): The evaluated config.
        fold_accuracies (list[float]): Validation accuracy per fold.
        mean_accuracy (float): Mean of `fold_accuracies`.
    """

    model_config = ConfigDict(frozen=True)

    config: TreeConfig
    fold_accuracies: list[float] = Field(min_length=1)
    mean_accuracy: float = Field(ge=0.0, le=1.0)


class TuningResult(BaseModel):
    """Scores of every grid combination, in grid order.

    Attributes:
        scores (list[TuningScore]): One score per `(max_depth, min_n)` pair,
            depths in the order given, then `min_n` values in the order given.
    """

    model_config = ConfigDict(frozen=True)

    scores: list[TuningScore] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_unique_configs(self) -> TuningResult:
        """Validate that no config is scored twice.

        Returns:
            TuningResult: The validated model instance.

        Raises:
            ValueError: If two scores share the same config.
        """
        configs = [score.config for score in self.scores]
        if len({(c.max_depth, c.min_n, c.criterion, c.max_nodes) for c in configs}) != len(configs):
            raise ValueError("Each config may only be scored once")
        return self

    @property
    def best(self) -> TuningScore:
        """Score with the highest mean accuracy; ties go to the earliest grid entry."""
        # max() keeps the first maximal element.
        return max(self.scores, key=lambda score: score.mean_accuracy)

    @property
    def best_config(self) -> TreeConfig:
        """Config of `best`."""
        return self.best.config

    def to_text(self) -> str:
        """Render one line per combination, marking the best with `*`."""
        best = self.best
        lines = ["max_depth  min_n  mean_accuracy"]
        for score in self.scores:
            marker = " *" if score is best else ""
            lines.append(f"{score.config.max_depth:>9}  {score.config.min_n:>5}  {score.mean_accuracy:>13.4f}{marker}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def tune_grid(
    dataset: Dataset,
    *,
    max_depths: Sequence[int],
    min_ns: Sequence[int],
    n_folds: int = 5,
    seed: int | None = None,
    base_config: TreeConfig | None = None,
) -> TuningResult:
    """Score every `(max_depth, min_n)` combination by stratified cross-validation.

    The same folds are reused for every combination, so scores are directly
    comparable. Each combination is a new config derived from `base_config`;
    nothing is modified in place.

    Args:
        dataset (Dataset): Training data to cross-validate on.
        max_depths (Sequence[int]): Candidate tree depths.
        min_ns (Sequence[int]): Candidate minimum node sizes.
        n_folds (int): Number of cross-validation folds.
        seed (int | None): Random seed for fold assignment.
        base_config (TreeConfig | None): Config supplying the remaining
            hyperparameters. Defaults to `TreeConfig()`.

    Returns:
        TuningResult: Scores for every combination.

    Raises:
        InvalidInputError: If either grid axis is empty or repeats a value,
            or the folds cannot be built.
    """
    _check_grid_axis("max_depths", max_depths)
    _check_grid_axis("min_ns", min_ns)
    base_config = base_config if base_config is not None else TreeConfig()
    folds = stratified_folds(dataset, n_folds=n_folds, seed=seed)

    logger.log(
        FIT_LEVEL,
        "Tuning grid",
        n_combinations=len(max_depths) * len(min_ns),
        n_folds=n_folds,
        max_depths=list(max_depths),
        min_ns=list(min_ns),
    )
    scores: list[TuningScore] = []
    for max_depth, min_n in itertools.product(max_depths, min_ns):
        config = base_config.with_updates(max_depth=max_depth, min_n=min_n)
        fold_accuracies = [_score_fold(train, validation, config) for train, validation in folds]
        score = TuningScore(
            config=config,
            fold_accuracies=fold_accuracies,
            mean_accuracy=statistics.fmean(fold_accuracies),
        )
        logger.debug("Scored combination", max_depth=max_depth, min_n=min_n, mean_accuracy=score.mean_accuracy)
        scores.append(score)

    result = TuningResult(scores=scores)
    logger.log(
        FIT_LEVEL,
        "Tuning finished",
        best_max_depth=result.best_config.max_depth,
        best_min_n=result.best_config.min_n,
        best_mean_accuracy=round(result.best.mean_accuracy, 4),
    )
    return result


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _score_fold(train: Dataset, validation: Dataset, config: TreeConfig) -> float:
    tree = build_tree(train, config)
    predicted = [prediction.label for prediction in predict_many(tree, validation)]
    return accuracy(predicted, validation.labels())


def _check_grid_axis(name: str, values: Sequence[int]) -> None:
    if not values:
        raise InvalidInputError(f"{name} must contain at least one value")
    if len(set(values)) != len(values):
        raise InvalidInputError(f"{name} must not repeat values, got {list(values)}")
