"""Tests for TreeConfig and environment-driven TreeSettings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError
from pytest_check import check

from cartkit.config import DEFAULT_MAX_DEPTH, DEFAULT_MIN_N, TreeConfig, TreeSettings


class TestTreeConfig:
    """Tests for `TreeConfig`."""

    def test_defaults(self) -> None:
        """The defaults are depth 30, min_n 20, Gini impurity and no node budget."""
        config = TreeConfig()

        with check:
            assert (config.max_depth, config.min_n) == (DEFAULT_MAX_DEPTH, DEFAULT_MIN_N) == (30, 20)
        with check:
            assert config.criterion == "gini"
        with check:
            assert config.max_nodes is None

    def test_is_frozen(self) -> None:
        """A config cannot be modified in place."""
        config = TreeConfig()

        with pytest.raises(ValidationError):
            config.max_depth = 3  # type: ignore[misc]

    def test_with_updates_returns_new_config(self) -> None:
        """`with_updates` derives a new config and leaves the original unchanged."""
        original = TreeConfig(max_depth=4, min_n=10)

        updated = original.with_updates(max_depth=2, criterion="entropy")

        with check:
            assert (updated.max_depth, updated.min_n, updated.criterion) == (2, 10, "entropy")
        with check:
            assert (original.max_depth, original.criterion) == (4, "gini")

    def test_with_updates_validates(self) -> None:
        """Invalid updated values are rejected."""
        with pytest.raises(ValidationError):
            TreeConfig().with_updates(min_n=0)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_depth": -1},
            {"min_n": 0},
            {"criterion": "misclassification"},
            {"max_nodes": 0},
        ],
        ids=["negative-depth", "zero-min-n", "unknown-criterion", "zero-node-budget"],
    )
    def test_invalid_values_rejected(self, overrides: dict[str, object]) -> None:
        """Out-of-range hyperparameters raise ValidationError."""
        with pytest.raises(ValidationError):
            TreeConfig(**overrides)  # type: ignore[arg-type]

    def test_zero_depth_is_allowed(self) -> None:
        """max_depth 0 is valid and describes a single-leaf tree."""
        assert TreeConfig(max_depth=0).max_depth == 0


class TestTreeSettings:
    """Tests for `TreeSettings` and `TreeConfig.from_settings`."""

    def test_reads_prefixed_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """`CARTKIT_*` variables override the defaults."""
        # Arrange
        monkeypatch.setenv("CARTKIT_MAX_DEPTH", "5")
        monkeypatch.setenv("CARTKIT_MIN_N", "3")
        monkeypatch.setenv("CARTKIT_CRITERION", "entropy")
        monkeypatch.setenv("CARTKIT_MAX_NODES", "31")

        # Act
        config = TreeConfig.from_settings(TreeSettings(_env_file=None))  # type: ignore[call-arg]

        # Assert
        assert config == TreeConfig(max_depth=5, min_n=3, criterion="entropy", max_nodes=31)

    def test_defaults_without_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without `CARTKIT_*` variables the settings match `TreeConfig()`."""
        for name in ("CARTKIT_MAX_DEPTH", "CARTKIT_MIN_N", "CARTKIT_CRITERION", "CARTKIT_MAX_NODES"):
            monkeypatch.delenv(name, raising=False)

        config = TreeConfig.from_settings(TreeSettings(_env_file=None))  # type: ignore[call-arg]

        assert config == TreeConfig()

    def test_invalid_environment_value_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An out-of-range environment value is rejected."""
        monkeypatch.setenv("CARTKIT_MIN_N", "0")

        with pytest.raises(ValidationError):
            TreeSettings(_env_file=None)  # type: ignore[call-arg]

    def test_reads_env_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Values can come from a `.env` file."""
        # Arrange
        monkeypatch.delenv("CARTKIT_MAX_DEPTH", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("CARTKIT_MAX_DEPTH=7\n", encoding="utf-8")

        # Act
        settings = TreeSettings(_env_file=env_file)  # type: ignore[call-arg]

        # Assert
        assert settings.max_depth == 7
