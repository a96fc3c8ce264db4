"""Explicit feature schemas and the immutable examples and datasets that conform to them."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cartkit.exceptions import InvalidInputError

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type FeatureKind = Literal["numeric", "categorical"]

type FeatureValue = float | str

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class FeatureSpec(BaseModel):
    """Name, kind, and declared levels of one feature.

    Attributes:
        name (str): Feature name, e.g. `"age"` or `"region"`.
        kind (FeatureKind): `"numeric"` for ordered numbers, `"categorical"`
            for unordered string levels.
        levels (tuple[str, ...]): Declared category levels in their canonical
            order. Empty for numeric features.

    Examples:
        >>> FeatureSpec(name="region", kind="categorical", levels=("north", "south"))
        FeatureSpec(name='region', kind='categorical', levels=('north', 'south'))
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Feature name, e.g. 'age'.")
    kind: FeatureKind = Field(description="'numeric' or 'categorical'.")
    levels: tuple[str, ...] = Field(
        default=(),
        description="Declared category levels in canonical order; empty for numeric features.",
    )


class Schema(BaseModel):
    """Ordered feature specs plus the declared label set.

    The label order is significant: it breaks ties between equally common
    labels in a leaf and fixes the row and column order of confusion
    matrices.

    Attributes:
        features (tuple[FeatureSpec, ...]): Features in vector order.
        labels (tuple[str, ...]): Declared labels in canonical order.
    """

    model_config = ConfigDict(frozen=True)

    features: tuple[FeatureSpec, ...] = Field(description="Features in vector order.")
    labels: tuple[str, ...] = Field(description="Declared labels in canonical order.")

    @property
    def arity(self) -> int:
        """Number of features in a feature vector."""
        return len(self.features)

    @property
    def feature_names(self) -> list[str]:
        """Feature names in vector order."""
        return [spec.name for spec in self.features]


@dataclass(frozen=True, slots=True)
class Example:
    """One labeled observation.

    Attributes:
        features (tuple[FeatureValue, ...]): Feature values in schema order.
        label (str): The observation's class label.
    """

    features: tuple[FeatureValue, ...]
    label: str


@dataclass(frozen=True)
class Dataset:
    """An ordered, immutable collection of examples sharing one schema.

    Every example is checked against the schema when the dataset is built,
    so downstream code can rely on arity, kinds, levels and labels.

    Attributes:
        schema (Schema): The schema all examples conform to.
        examples (tuple[Example, ...]): The examples in their original order.

    Raises:
        InvalidInputError: If the schema is malformed or any example does not
            conform to it.

    Examples:
        >>> schema = Schema(
        ...     features=(FeatureSpec(name="x", kind="numeric"),),
        ...     labels=("A", "B"),
        ... )
        >>> data = Dataset.from_rows(schema, [((0.0,), "A"), ((1.0,), "B")])
        >>> len(data), data.labels()
        (2, ['A', 'B'])
    """

    schema: Schema
    examples: tuple[Example, ...]

    def __post_init__(self) -> None:
        """Validate the schema and every example against it."""
        validate_schema(self.schema)
        for position, example in enumerate(self.examples):
            _validate_example(self.schema, example, position)

    @classmethod
    def from_rows(cls, schema: Schema, rows: Iterable[tuple[Sequence[FeatureValue], str]]) -> Dataset:
        """Build a dataset from `(feature_values, label)` pairs.

        Integer values of numeric features are converted to floats.

        Args:
            schema (Schema): Schema the rows follow.
            rows (Iterable[tuple[Sequence[FeatureValue], str]]): Feature
                vectors and their labels.

        Returns:
            Dataset: The validated dataset.
        """
        examples = tuple(Example(features=_coerce_vector(schema, values), label=label) for values, label in rows)
        return cls(schema=schema, examples=examples)

    def __len__(self) -> int:
        return len(self.examples)

    def __iter__(self) -> Iterator[Example]:
        return iter(self.examples)

    def labels(self) -> list[str]:
        """Return every example's label, in dataset order."""
        return [example.label for example in self.examples]

    def subset(self, indices: Iterable[int]) -> Dataset:
        """Return a new dataset holding the examples at `indices`, in the given order.

        Args:
            indices (Iterable[int]): Positions of the examples to keep.

        Returns:
            Dataset: Dataset over the same schema.
        """
        return Dataset(schema=self.schema, examples=tuple(self.examples[int(i)] for i in indices))


# ---------------------------------------------------------------------------
# Public interface -- Validation
# ---------------------------------------------------------------------------


def validate_schema(schema: Schema) -> None:
    """Raise `InvalidInputError` if `schema` is malformed.

    A schema without features is accepted here; the tree builder rejects it
    separately because it is a valid shape for data but not for training.

    Args:
        schema (Schema): The schema to check.

    Raises:
        InvalidInputError: If the schema declares no labels, repeats a label
            or feature name, gives a categorical feature no (or repeated)
            levels, or gives a numeric feature levels.
    """
    if not schema.labels:
        raise InvalidInputError("Schema must declare at least one label")
    duplicate_labels = _duplicates(schema.labels)
    if duplicate_labels:
        raise InvalidInputError(f"Schema declares duplicate labels: {duplicate_labels}")
    duplicate_names = _duplicates(schema.feature_names)
    if duplicate_names:
        raise InvalidInputError(f"Schema declares duplicate feature names: {duplicate_names}")

    for spec in schema.features:
        if spec.kind == "numeric" and spec.levels:
            raise InvalidInputError(f"Numeric feature '{spec.name}' must not declare levels")
        if spec.kind == "categorical":
            if not spec.levels:
                raise InvalidInputError(f"Categorical feature '{spec.name}' must declare at least one level")
            duplicate_levels = _duplicates(spec.levels)
            if duplicate_levels:
                raise InvalidInputError(f"Categorical feature '{spec.name}' repeats levels: {duplicate_levels}")


def is_finite_number(value: object) -> bool:
    """Return True for finite ints and floats, excluding bools."""
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _validate_example(schema: Schema, example: Example, position: int) -> None:
    """Raise `InvalidInputError` if `example` does not conform to `schema`.

    Args:
        schema (Schema): The dataset schema.
        example (Example): The example to check.
        position (int): Index of the example, used in error messages.

    Raises:
        InvalidInputError: On wrong arity, a value of the wrong kind, an
            undeclared level, or an undeclared label.
    """
    if len(example.features) != schema.arity:
        raise InvalidInputError(
            f"Example {position} has {len(example.features)} feature values, schema declares {schema.arity}"
        )
    if example.label not in schema.labels:
        raise InvalidInputError(f"Example {position} has undeclared label {example.label!r}")

    for spec, value in zip(schema.features, example.features, strict=True):
        if spec.kind == "numeric":
            if not is_finite_number(value):
                raise InvalidInputError(f"Example {position}: feature '{spec.name}' needs a finite number, got {value!r}")
        elif value not in spec.levels:
            raise InvalidInputError(f"Example {position}: feature '{spec.name}' has undeclared level {value!r}")


def _coerce_vector(schema: Schema, values: Sequence[FeatureValue]) -> tuple[FeatureValue, ...]:
    """Convert integer values of numeric features to floats, leaving others untouched."""
    if len(values) != schema.arity:
        return tuple(values)
    return tuple(
        float(value) if spec.kind == "numeric" and is_finite_number(value) else value
        for spec, value in zip(schema.features, values, strict=True)
    )


def _duplicates(values: Iterable[str]) -> list[str]:
    """Return the values that appear more than once, each listed once, in first-repeat order."""
    seen: set[str] = set()
    repeated: list[str] = []
    for value in values:
        if value in seen and value not in repeated:
            repeated.append(value)
        seen.add(value)
    return repeated
