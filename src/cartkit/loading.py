"""Conversion of Polars survey tables into schema-checked datasets."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, NamedTuple

import polars as pl
from loguru import logger

from cartkit.exceptions import InvalidInputError
from cartkit.schema import Dataset, Example, FeatureKind, FeatureSpec, Schema

type ColumnType = Literal["numeric", "boolean", "categorical", "datetime", "duration", "excluded"]

_HIGH_CARDINALITY_RATIO: float = 0.9

_DTYPE_TO_COLUMN_TYPE: dict[type[pl.DataType] | pl.DataType, ColumnType] = {
    pl.Int8: "numeric",
    pl.Int16: "numeric",
    pl.Int32: "numeric",
    pl.Int64: "numeric",
    pl.UInt8: "numeric",
    pl.UInt16: "numeric",
    pl.UInt32: "numeric",
    pl.UInt64: "numeric",
    pl.Float32: "numeric",
    pl.Float64: "numeric",
    pl.Boolean: "boolean",
    pl.String: "categorical",
    pl.Categorical: "categorical",
    pl.Enum: "categorical",
    pl.Date: "datetime",
    pl.Datetime: "datetime",
    pl.Duration: "duration",
}


class ExcludedFeature(NamedTuple):
    """A candidate feature column left out of the dataset, with the reason.

    Attributes:
        name (str): The column name.
        reason (str): Human-readable explanation for the exclusion.
    """

    name: str
    reason: str


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def load_dataset(
    df: pl.DataFrame,
    target: str,
    *,
    features: Sequence[str] | None = None,
    labels: Sequence[str] | None = None,
) -> Dataset:
    """Build a schema-checked dataset from a Polars DataFrame.

    NaN in float columns counts as missing, like null. Rows with a missing
    target are dropped first. Candidate feature columns are then filtered:
    unsupported dtypes, all-null columns, single-valued columns and
    identifier-like string columns are excluded and logged. Rows with missing
    values in the kept feature columns are dropped with a warning.

    Numeric, boolean (0/1) and temporal (microseconds) columns become numeric
    features; string, categorical and enum columns become categorical
    features whose levels are the sorted distinct values. Target values are
    converted to strings.

    Args:
        df (pl.DataFrame): Source table, e.g. a survey export.
        target (str): Name of the outcome column.
        features (Sequence[str] | None): Candidate feature columns. Defaults
            to every column except `target`.
        labels (Sequence[str] | None): Declared label order. Defaults to the
            sorted distinct target values.

    Returns:
        Dataset: The converted dataset.

    Raises:
        InvalidInputError: If `target` or a requested feature is missing, the
            target has no non-null values, no feature column survives the
            filters, no rows remain, or `labels` misses an observed label.
    """
    if target not in df.columns:
        raise InvalidInputError(f"Target column '{target}' not found in DataFrame")
    candidates = list(features) if features is not None else [col for col in df.columns if col != target]
    missing = [col for col in candidates if col not in df.columns]
    if missing:
        raise InvalidInputError(f"Requested feature columns not found in DataFrame: {missing}")
    if target in candidates:
        raise InvalidInputError(f"Target column '{target}' cannot also be a feature")

    df_clean = _nan_to_null(df, [target, *candidates]).drop_nulls(subset=[target])
    if df_clean.height == 0:
        raise InvalidInputError(f"Target column '{target}' contains only null values")

    kept, excluded = filter_features(df_clean, candidates)
    for feature in excluded:
        logger.info("Excluded feature column", column=feature.name, reason=feature.reason)
    if not kept:
        excluded_labels = [f"{feature.name} ({feature.reason})" for feature in excluded]
        raise InvalidInputError(f"No usable feature columns remain. Excluded: {excluded_labels}")

    n_before = df_clean.height
    df_clean = df_clean.drop_nulls(subset=kept)
    if df_clean.height < n_before:
        logger.warning("Dropped rows with missing feature values", dropped=n_before - df_clean.height)
    if df_clean.height == 0:
        raise InvalidInputError("No rows remain after dropping rows with missing feature values")

    target_values = [str(value) for value in df_clean[target].to_list()]
    declared_labels = _declare_labels(target_values, labels)

    specs: list[FeatureSpec] = []
    columns: list[list[float | str]] = []
    for col_name in kept:
        spec, values = _encode_column(df_clean[col_name])
        specs.append(spec)
        columns.append(values)

    schema = Schema(features=tuple(specs), labels=declared_labels)
    examples = tuple(
        Example(features=tuple(column[row] for column in columns), label=label)
        for row, label in enumerate(target_values)
    )
    return Dataset(schema=schema, examples=examples)


def filter_features(df: pl.DataFrame, feature_columns: Sequence[str]) -> tuple[list[str], list[ExcludedFeature]]:
    """Partition feature columns into kept and excluded sets.

    Args:
        df (pl.DataFrame): The table to inspect.
        feature_columns (Sequence[str]): Column names to evaluate.

    Returns:
        tuple[list[str], list[ExcludedFeature]]: Kept column names in input
            order, and the excluded columns with their reasons.
    """
    kept: list[str] = []
    excluded: list[ExcludedFeature] = []
    for col_name in feature_columns:
        reason = _get_exclusion_reason(df[col_name], df.height)
        if reason is None:
            kept.append(col_name)
        else:
            excluded.append(ExcludedFeature(name=col_name, reason=reason))
    return kept, excluded


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _nan_to_null(df: pl.DataFrame, columns: Sequence[str]) -> pl.DataFrame:
    """Mark NaN in float columns as null so it is handled as a missing value."""
    float_columns = [col for col in columns if df[col].dtype.is_float()]
    if not float_columns:
        return df
    return df.with_columns(pl.col(col).fill_nan(None) for col in float_columns)


def _classify_column(dtype: pl.DataType) -> ColumnType:
    """Classify a Polars dtype into a broad column type.

    Parameterized dtypes such as `Datetime("us")` do not hash like their bare
    classes, so an `isinstance` fallback covers them.
    """
    result = _DTYPE_TO_COLUMN_TYPE.get(dtype)
    if result is not None:
        return result
    if isinstance(dtype, pl.Datetime | pl.Date):
        return "datetime"
    if isinstance(dtype, pl.Duration):
        return "duration"
    if isinstance(dtype, pl.Enum | pl.Categorical):
        return "categorical"
    return "excluded"


def _get_exclusion_reason(series: pl.Series, row_count: int) -> str | None:
    """Return why `series` should be excluded, or `None` to keep it."""
    column_type = _classify_column(series.dtype)
    if column_type == "excluded":
        return "unsupported dtype"
    if series.is_null().all():
        return "all values are null"

    unique_count = series.drop_nulls().n_unique()
    if unique_count <= 1:
        return "single unique value"
    if column_type == "categorical" and row_count > 0 and unique_count / row_count > _HIGH_CARDINALITY_RATIO:
        return "high cardinality: likely unique identifier"
    return None


def _encode_column(series: pl.Series) -> tuple[FeatureSpec, list[float | str]]:
    """Convert one null-free column into a feature spec and Python values."""
    column_type = _classify_column(series.dtype)
    kind: FeatureKind = "categorical" if column_type == "categorical" else "numeric"

    if column_type == "categorical":
        values: list[float | str] = [str(value) for value in series.cast(pl.String).to_list()]
        levels = tuple(sorted(set(values)))  # type: ignore[arg-type]
        return FeatureSpec(name=series.name, kind=kind, levels=levels), values

    if column_type == "boolean":
        numeric = series.cast(pl.Int8)
    elif column_type == "datetime":
        numeric = series.cast(pl.Datetime("us")).dt.epoch("us")
    elif column_type == "duration":
        numeric = series.cast(pl.Duration("us")).dt.total_microseconds()
    else:
        numeric = series
    return FeatureSpec(name=series.name, kind=kind), [float(value) for value in numeric.cast(pl.Float64).to_list()]


def _declare_labels(observed: Sequence[str], labels: Sequence[str] | None) -> tuple[str, ...]:
    """Return the declared label order, checking that it covers every observed label."""
    if labels is None:
        return tuple(sorted(set(observed)))
    undeclared = sorted(set(observed) - set(labels))
    if undeclared:
        raise InvalidInputError(f"Observed labels {undeclared} are missing from the declared labels {list(labels)}")
    return tuple(labels)
