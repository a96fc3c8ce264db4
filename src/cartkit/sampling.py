"""Train/test splits and cross-validation folds stratified by label."""

from __future__ import annotations

import numpy as np
from loguru import logger
from sklearn.model_selection import StratifiedKFold, train_test_split

from cartkit.exceptions import InvalidInputError
from cartkit.logging import FIT_LEVEL
from cartkit.schema import Dataset


def stratified_split(
    dataset: Dataset,
    *,
    test_fraction: float = 0.25,
    seed: int | None = None,
) -> tuple[Dataset, Dataset]:
    """Split `dataset` into train and test sets with matching label proportions.

    Each label (stratum) is divided in the same train/test ratio, so a rare
    outcome is not lost from either side. Examples keep their original
    relative order within each returned dataset.

    Args:
        dataset (Dataset): Data to split.
        test_fraction (float): Share of examples assigned to the test set,
            strictly between 0 and 1.
        seed (int | None): Random seed for a reproducible split.

    Returns:
        tuple[Dataset, Dataset]: `(train, test)`.

    Raises:
        InvalidInputError: If `test_fraction` is outside `(0, 1)`, or the
            dataset is too small, or a label has too few examples to appear
            on both sides.
    """
    if not 0.0 < test_fraction < 1.0:
        raise InvalidInputError(f"test_fraction must be between 0 and 1 (exclusive), got {test_fraction}")

    labels = np.asarray(dataset.labels())
    indices = np.arange(len(dataset))
    try:
        train_indices, test_indices = train_test_split(
            indices,
            test_size=test_fraction,
            stratify=labels,
            random_state=seed,
        )
    except ValueError as exc:
        raise InvalidInputError(f"Cannot stratify {len(dataset)} examples: {exc}") from exc

    train = dataset.subset(np.sort(train_indices))
    test = dataset.subset(np.sort(test_indices))
    logger.log(FIT_LEVEL, "Split dataset by label", n_train=len(train), n_test=len(test), seed=seed)
    return train, test


def stratified_folds(
    dataset: Dataset,
    *,
    n_folds: int = 5,
    seed: int | None = None,
) -> list[tuple[Dataset, Dataset]]:
    """Partition `dataset` into cross-validation folds stratified by label.

    Every example appears in exactly one validation set.

    Args:
        dataset (Dataset): Data to partition.
        n_folds (int): Number of folds, at least 2.
        seed (int | None): Random seed for reproducible shuffling.

    Returns:
        list[tuple[Dataset, Dataset]]: One `(train, validation)` pair per fold.

    Raises:
        InvalidInputError: If `n_folds` is below 2 or exceeds the size of
            the dataset.
    """
    if n_folds < 2:
        raise InvalidInputError(f"n_folds must be at least 2, got {n_folds}")
    if n_folds > len(dataset):
        raise InvalidInputError(f"n_folds ({n_folds}) cannot exceed the number of examples ({len(dataset)})")

    labels = np.asarray(dataset.labels())
    splitter = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=seed)
    try:
        folds = [
            (dataset.subset(train_indices), dataset.subset(validation_indices))
            for train_indices, validation_indices in splitter.split(np.zeros(len(dataset)), labels)
        ]
    except ValueError as exc:
        raise InvalidInputError(f"Cannot build {n_folds} stratified folds: {exc}") from exc
    return folds
