"""Custom exceptions for cartkit.

All exceptions subclass `ValueError` because each one signals a caller
supplying bad data or arguments, and they share the `CartkitError` marker so
the whole family can be caught at once:

- InvalidInputError: Raised for unusable training inputs (empty datasets,
  zero-feature schemas, malformed schemas, values outside the declared schema).
- SchemaMismatchError: Raised when a prediction-time feature vector does not
  fit the schema a tree was trained on.
- LengthMismatchError: Raised when prediction and truth sequences handed to the
  evaluator differ in length.
"""

from __future__ import annotations


class CartkitError(Exception):
    """Marker base class for every error raised by cartkit.

    Examples:
        >>> try:
        ...     raise InvalidInputError("Training dataset is empty")
        ... except CartkitError as exc:
        ...     str(exc)
        'Training dataset is empty'
    """


class InvalidInputError(CartkitError, ValueError):
    """Raised when training or evaluation inputs cannot be used.

    Typical causes are an empty training set, a schema without features or
    labels, duplicate names in a schema, or an example whose values fall
    outside the declared schema.
    """


class SchemaMismatchError(CartkitError, ValueError):
    """Raised when a feature vector is incompatible with a tree's schema.

    Attributes:
        expected_arity (int): Number of features the schema declares.
        actual_arity (int): Number of values in the offending feature vector.
        feature (str | None): Name of the feature whose value has the wrong
            type, or `None` when the arity itself is wrong.

    Examples:
        >>> err = SchemaMismatchError(expected_arity=3, actual_arity=2)
        >>> str(err)
        'Expected 3 feature values, got 2'
        >>> err = SchemaMismatchError(
        ...     expected_arity=3, actual_arity=3, feature="age", reason="expected a number, got 'old'"
        ... )
        >>> err.feature
        'age'
    """

    expected_arity: int
    actual_arity: int
    feature: str | None

    def __init__(
        self,
        *,
        expected_arity: int,
        actual_arity: int,
        feature: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize SchemaMismatchError.

        Args:
            expected_arity (int): Number of features the schema declares.
            actual_arity (int): Number of values that were supplied.
            feature (str | None): Offending feature name, if the problem is a
                single value rather than the arity.
            reason (str | None): Short description of what is wrong with the
                value of `feature`.
        """
        if feature is None:
            message = f"Expected {expected_arity} feature values, got {actual_arity}"
        else:
            message = f"Feature '{feature}' does not match the schema: {reason}"
        super().__init__(message)
        self.expected_arity = expected_arity
        self.actual_arity = actual_arity
        self.feature = feature


class LengthMismatchError(CartkitError, ValueError):
    """Raised when predictions and truths differ in length.

    Attributes:
        predictions_length (int): Number of predicted labels.
        truths_length (int): Number of true labels.

    Examples:
        >>> err = LengthMismatchError(predictions_length=4, truths_length=5)
        >>> str(err)
        'Got 4 predictions but 5 true labels'
    """

    predictions_length: int
    truths_length: int

    def __init__(self, *, predictions_length: int, truths_length: int) -> None:
        """Initialize LengthMismatchError.

        Args:
            predictions_length (int): Number of predicted labels.
            truths_length (int): Number of true labels.
        """
        super().__init__(f"Got {predictions_length} predictions but {truths_length} true labels")
        self.predictions_length = predictions_length
        self.truths_length = truths_length
