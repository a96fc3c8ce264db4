"""Accuracy and confusion-matrix evaluation of predicted labels."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sklearn.metrics import accuracy_score
from sklearn.metrics import confusion_matrix as sklearn_confusion_matrix

from cartkit.exceptions import InvalidInputError, LengthMismatchError
from cartkit.logging import FIT_LEVEL
from cartkit.schema import Dataset
from cartkit.tree.models import FittedTree
from cartkit.tree.prediction import predict_many

_CORNER_HEADER: str = "truth \\ pred"

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class ConfusionMatrix(BaseModel):
    """Counts of (true label, predicted label) pairs over a fixed label set.

    Rows are true labels and columns are predicted labels, both in `labels`
    order. Every declared label has a row and a column even when its counts
    are all zero, so the shape is stable across runs.

    Attributes:
        labels (tuple[str, ...]): Row and column labels, in order.
        counts (tuple[tuple[int, ...], ...]): `counts[i][j]` is the number of
            examples with true label `labels[i]` predicted as `labels[j]`.

    Examples:
        >>> matrix = ConfusionMatrix(labels=("A", "B"), counts=((4, 0), (1, 3)))
        >>> matrix.cell("B", "A"), matrix.total
        (1, 8)
    """

    model_config = ConfigDict(frozen=True)

    labels: tuple[str, ...] = Field(description="Row and column labels, in order.")
    counts: tuple[tuple[int, ...], ...] = Field(description="Rows are true labels, columns are predicted labels.")

    @model_validator(mode="after")
    def _validate_square(self) -> ConfusionMatrix:
        """Validate that `counts` is a square matrix matching `labels`.

        Returns:
            ConfusionMatrix: The validated model instance.

        Raises:
            ValueError: If the number of rows or any row's length differs
                from the number of labels.
        """
        size = len(self.labels)
        if len(self.counts) != size or any(len(row) != size for row in self.counts):
            raise ValueError(f"counts must be a {size}x{size} matrix to match labels {list(self.labels)}")
        return self

    @property
    def total(self) -> int:
        """Number of evaluated examples (sum of all cells)."""
        return sum(sum(row) for row in self.counts)

    def cell(self, true_label: str, predicted_label: str) -> int:
        """Return the count for one `(true_label, predicted_label)` pair."""
        return self.counts[self.labels.index(true_label)][self.labels.index(predicted_label)]

    def to_text(self) -> str:
        """Render the matrix as a plain-text table with true labels as rows."""
        header = [_CORNER_HEADER, *self.labels]
        body = [[label, *(str(count) for count in row)] for label, row in zip(self.labels, self.counts, strict=True)]
        return _format_table([header, *body])


class Evaluation(BaseModel):
    """Accuracy and confusion matrix of one set of predictions.

    Attributes:
        accuracy (float): Fraction of correct predictions.
        confusion_matrix (ConfusionMatrix): Per-label breakdown.
    """

    model_config = ConfigDict(frozen=True)

    accuracy: float = Field(ge=0.0, le=1.0, description="Fraction of correct predictions.")
    confusion_matrix: ConfusionMatrix = Field(description="Per-label breakdown of predictions.")

    def to_text(self) -> str:
        """Render the accuracy line followed by the confusion matrix table."""
        return f"accuracy: {self.accuracy:.4f} (n={self.confusion_matrix.total})\n{self.confusion_matrix.to_text()}"


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def accuracy(predictions: Sequence[str], truths: Sequence[str]) -> float:
    """Return the fraction of predictions equal to their true label.

    Args:
        predictions (Sequence[str]): Predicted labels.
        truths (Sequence[str]): True labels, parallel to `predictions`.

    Returns:
        float: Accuracy in `[0, 1]`.

    Raises:
        LengthMismatchError: If the sequences differ in length.
        InvalidInputError: If both sequences are empty.

    Examples:
        >>> accuracy(["A", "B", "B", "A"], ["A", "B", "A", "A"])
        0.75
    """
    _check_lengths(predictions, truths)
    if not truths:
        raise InvalidInputError("Cannot compute accuracy over zero examples")
    return float(accuracy_score(list(truths), list(predictions)))


def confusion_matrix(
    predictions: Sequence[str],
    truths: Sequence[str],
    labels: Sequence[str] | None = None,
) -> ConfusionMatrix:
    """Tabulate predictions against truths over a fixed label set.

    Args:
        predictions (Sequence[str]): Predicted labels.
        truths (Sequence[str]): True labels, parallel to `predictions`.
        labels (Sequence[str] | None): Declared label set, in row/column
            order. Defaults to the sorted labels observed in either sequence.

    Returns:
        ConfusionMatrix: The matrix; its cells sum to `len(truths)`.

    Raises:
        LengthMismatchError: If the sequences differ in length.
        InvalidInputError: If a label outside `labels` appears, or `labels`
            repeats a label.
    """
    _check_lengths(predictions, truths)
    declared = tuple(labels) if labels is not None else tuple(sorted({*predictions, *truths}))
    if len(set(declared)) != len(declared):
        raise InvalidInputError(f"Label set repeats labels: {list(declared)}")
    unknown = sorted({*predictions, *truths} - set(declared))
    if unknown:
        raise InvalidInputError(f"Labels {unknown} are not in the declared label set {list(declared)}")

    if not truths:
        counts = tuple(tuple(0 for _ in declared) for _ in declared)
    else:
        matrix = sklearn_confusion_matrix(list(truths), list(predictions), labels=list(declared))
        counts = tuple(tuple(int(count) for count in row) for row in matrix)
    return ConfusionMatrix(labels=declared, counts=counts)


def evaluate(tree: FittedTree, dataset: Dataset) -> Evaluation:
    """Predict every example of `dataset` and score the predictions.

    Args:
        tree (FittedTree): The fitted tree.
        dataset (Dataset): Labeled evaluation data, typically a held-out test set.

    Returns:
        Evaluation: Accuracy and a confusion matrix over the tree's declared labels.

    Raises:
        InvalidInputError: If `dataset` is empty or carries labels the tree's
            schema does not declare.
        SchemaMismatchError: If the examples do not fit the tree's schema.
    """
    predicted = [prediction.label for prediction in predict_many(tree, dataset)]
    truths = dataset.labels()
    result = Evaluation(
        accuracy=accuracy(predicted, truths),
        confusion_matrix=confusion_matrix(predicted, truths, labels=tree.feature_schema.labels),
    )
    logger.log(FIT_LEVEL, "Evaluated tree", n_samples=len(truths), accuracy=round(result.accuracy, 4))
    return result


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _check_lengths(predictions: Sequence[str], truths: Sequence[str]) -> None:
    if len(predictions) != len(truths):
        raise LengthMismatchError(predictions_length=len(predictions), truths_length=len(truths))


def _format_table(rows: list[list[str]]) -> str:
    """Left-align the first column and right-align the rest, separated by two spaces."""
    widths = [max(len(row[column]) for row in rows) for column in range(len(rows[0]))]
    lines = []
    for row in rows:
        cells = [row[0].ljust(widths[0]), *(cell.rjust(width) for cell, width in zip(row[1:], widths[1:], strict=True))]
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)
