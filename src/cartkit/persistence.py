"""Saving fitted trees to JSON files and loading them back.

A saved file holds the whole `FittedTree`: nodes, schema and the config used
to grow it, so a loaded tree predicts exactly like the one that was saved.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from cartkit.tree.models import FittedTree

__all__ = ["load_tree", "save_tree"]


def save_tree(tree: FittedTree, path: str | Path) -> Path:
    """Write `tree` to `path` as indented JSON, creating parent directories.

    Args:
        tree (FittedTree): The tree to save.
        path (str | Path): Destination file.

    Returns:
        Path: The path written to.
    """
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(tree.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Saved tree", path=str(destination), node_count=tree.node_count)
    return destination


def load_tree(path: str | Path) -> FittedTree:
    """Read a tree written by `save_tree`.

    Args:
        path (str | Path): File to read.

    Returns:
        FittedTree: The restored tree.

    Raises:
        FileNotFoundError: If `path` does not exist.
        pydantic.ValidationError: If the file is not a valid saved tree.
    """
    source = Path(path)
    tree = FittedTree.model_validate_json(source.read_text(encoding="utf-8"))
    logger.info("Loaded tree", path=str(source), node_count=tree.node_count)
    return tree
