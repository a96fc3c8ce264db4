"""Hyperparameters for growing a tree, and environment-driven defaults."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

type Criterion = Literal["gini", "entropy"]

DEFAULT_MAX_DEPTH: int = 30
DEFAULT_MIN_N: int = 20


class TreeConfig(BaseModel):
    """Immutable hyperparameters used to grow one tree.

    Changing a hyperparameter never mutates a config in place; use
    `with_updates()` to derive a new, validated config.

    Attributes:
        max_depth (int): Maximum depth of the tree. 0 yields a single leaf.
        min_n (int): Minimum number of examples on each side of a split.
        criterion (Criterion): Impurity measure used to score splits.
        max_nodes (int | None): Optional cap on the total number of nodes.
            `None` means unbounded.

    Examples:
        >>> config = TreeConfig(max_depth=4, min_n=10)
        >>> config.with_updates(max_depth=2).max_depth
        2
        >>> config.max_depth
        4
    """

    model_config = ConfigDict(frozen=True)

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        description="Maximum depth of the tree; 0 produces a single root leaf.",
    )
    min_n: int = Field(
        default=DEFAULT_MIN_N,
        ge=1,
        description="Minimum number of examples each child of a split must receive.",
    )
    criterion: Criterion = Field(
        default="gini",
        description="Impurity measure used to score candidate splits.",
    )
    max_nodes: int | None = Field(
        default=None,
        ge=1,
        description="Optional cap on the total number of nodes in the tree.",
    )

    def with_updates(self, **changes: Any) -> TreeConfig:
        """Return a new config with `changes` applied and validated.

        Args:
            **changes (Any): Field values to override.

        Returns:
            TreeConfig: The derived config.

        Raises:
            pydantic.ValidationError: If an updated value is invalid.
        """
        return TreeConfig.model_validate({**self.model_dump(), **changes})

    @classmethod
    def from_settings(cls, settings: TreeSettings | None = None) -> TreeConfig:
        """Build a config from `CARTKIT_*` environment settings.

        Args:
            settings (TreeSettings | None): Settings to use. Loaded from the
                environment and `.env` when `None`.

        Returns:
            TreeConfig: Config holding the settings' values.
        """
        settings = settings if settings is not None else TreeSettings()
        return cls(
            max_depth=settings.max_depth,
            min_n=settings.min_n,
            criterion=settings.criterion,
            max_nodes=settings.max_nodes,
        )


class TreeSettings(BaseSettings):
    """Default hyperparameters read from `CARTKIT_*` environment variables or `.env`.

    Attributes:
        max_depth (int): Read from `CARTKIT_MAX_DEPTH`.
        min_n (int): Read from `CARTKIT_MIN_N`.
        criterion (Criterion): Read from `CARTKIT_CRITERION`.
        max_nodes (int | None): Read from `CARTKIT_MAX_NODES`.
    """

    model_config = SettingsConfigDict(
        env_prefix="CARTKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)
    min_n: int = Field(default=DEFAULT_MIN_N, ge=1)
    criterion: Criterion = "gini"
    max_nodes: int | None = Field(default=None, ge=1)
