"""Pydantic node, tree, prediction, and rule models for fitted classification trees."""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterator, Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cartkit.config import TreeConfig
from cartkit.schema import FeatureValue, Schema

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type PredicateOp = Literal["<=", ">", "==", "!="]

# ---------------------------------------------------------------------------
# Public models -- Tree nodes
# ---------------------------------------------------------------------------


class LeafNode(BaseModel):
    """A terminal node holding the class distribution of its training examples.

    Attributes:
        kind (Literal["leaf"]): Discriminator field; always `"leaf"`.
        label (str): Predicted (majority) label.
        counts (dict[str, int]): Training example count per declared label,
            in declared label order, zeros included.
        distribution (dict[str, float]): `counts` normalized to probabilities.
        samples (int): Number of training examples that reached this leaf.
        impurity (float): Impurity of the leaf's training examples.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["leaf"] = "leaf"
    label: str = Field(description="Predicted (majority) label.")
    counts: dict[str, int] = Field(description="Training example count per declared label.")
    distribution: dict[str, float] = Field(description="Label probabilities at this leaf.")
    samples: int = Field(ge=1, description="Number of training examples that reached this leaf.")
    impurity: float = Field(ge=0.0, description="Impurity of the leaf's training examples.")


class SplitNode(BaseModel):
    """An internal node routing examples to one of two children.

    Numeric splits send `value <= threshold` left; categorical splits send
    `value == level` left. Everything else, unseen levels included, goes right.

    Attributes:
        kind (Literal["split"]): Discriminator field; always `"split"`.
        feature_index (int): Position of the split feature in the schema.
        feature (str): Name of the split feature.
        threshold (float | None): Split threshold for numeric features.
        level (str | None): Left-hand level for categorical features.
        left (LeafNode | SplitNode): Child receiving matching examples.
        right (LeafNode | SplitNode): Child receiving all other examples.
        samples (int): Number of training examples that reached this node.
        impurity (float): Impurity of those examples.
        impurity_decrease (float): Parent impurity minus size-weighted child
            impurity achieved by this split.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["split"] = "split"
    feature_index: int = Field(ge=0, description="Position of the split feature in the schema.")
    feature: str = Field(description="Name of the split feature.")
    threshold: float | None = Field(default=None, description="Threshold for numeric splits.")
    level: str | None = Field(default=None, description="Left-hand level for categorical splits.")
    left: Annotated[LeafNode | SplitNode, Field(discriminator="kind")]
    right: Annotated[LeafNode | SplitNode, Field(discriminator="kind")]
    samples: int = Field(ge=2, description="Number of training examples that reached this node.")
    impurity: float = Field(ge=0.0, description="Impurity of the node's training examples.")
    impurity_decrease: float = Field(ge=0.0, description="Impurity reduction achieved by the split.")

    @model_validator(mode="after")
    def _validate_single_test(self) -> SplitNode:
        """Validate that exactly one of `threshold` and `level` is set.

        Returns:
            SplitNode: The validated model instance.

        Raises:
            ValueError: If both or neither of `threshold` and `level` are set.
        """
        if (self.threshold is None) == (self.level is None):
            raise ValueError("Exactly one of threshold and level must be set on a split node")
        return self

    def goes_left(self, value: FeatureValue) -> bool:
        """Return True if an example with `value` for this node's feature belongs in the left child."""
        if self.threshold is not None:
            return value <= self.threshold  # type: ignore[operator]
        return value == self.level

    def predicates(self) -> tuple[Predicate, Predicate]:
        """Return the `(left, right)` branch conditions of this split."""
        if self.threshold is not None:
            return (
                Predicate(variable=self.feature, operator="<=", value=self.threshold),
                Predicate(variable=self.feature, operator=">", value=self.threshold),
            )
        level = str(self.level)
        return (
            Predicate(variable=self.feature, operator="==", value=level),
            Predicate(variable=self.feature, operator="!=", value=level),
        )


type TreeNode = LeafNode | SplitNode


class FittedTree(BaseModel):
    """A fitted classification tree together with the schema and config that produced it.

    Attributes:
        root (LeafNode | SplitNode): Root node of the tree.
        feature_schema (Schema): Schema of the training data.
        config (TreeConfig): Hyperparameters used to grow the tree.
        n_samples (int): Number of training examples.
    """

    model_config = ConfigDict(frozen=True)

    root: Annotated[LeafNode | SplitNode, Field(discriminator="kind")]
    feature_schema: Schema = Field(description="Schema of the training data.")
    config: TreeConfig = Field(description="Hyperparameters used to grow the tree.")
    n_samples: int = Field(ge=1, description="Number of training examples.")

    @property
    def depth(self) -> int:
        """Length of the longest root-to-leaf path; 0 for a single leaf."""
        return _depth(self.root)

    @property
    def leaf_count(self) -> int:
        """Number of leaves."""
        return sum(1 for node in iter_nodes(self.root) if isinstance(node, LeafNode))

    @property
    def node_count(self) -> int:
        """Total number of nodes, leaves included."""
        return sum(1 for _ in iter_nodes(self.root))


class Prediction(BaseModel):
    """Predicted label and class distribution for one example.

    Attributes:
        label (str): Majority label of the leaf the example reached.
        distribution (dict[str, float]): Label probabilities at that leaf.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    distribution: dict[str, float]


# ---------------------------------------------------------------------------
# Public models -- Rules
# ---------------------------------------------------------------------------


class Predicate(BaseModel):
    """A single boolean condition on one feature.

    Represents a branch test such as `age <= 34.5` or `region != north`.
    A rule is the ordered list of predicates from the root to one leaf.

    Attributes:
        variable (str): Feature name the condition applies to.
        operator (PredicateOp): `"<="` / `">"` for numeric thresholds,
            `"=="` / `"!="` for categorical levels.
        value (float | str): Threshold or level.

    Examples:
        >>> p = Predicate(variable="age", operator="<=", value=34.5)
        >>> str(p)
        'age <= 34.5'
        >>> p.eval(30.0)
        True
        >>> Predicate(variable="region", operator="!=", value="north").eval("south")
        True
    """

    model_config = ConfigDict(frozen=True)

    variable: str = Field(description="Feature name the condition applies to, e.g. 'age'.")
    operator: PredicateOp = Field(
        description="'<=' or '>' for numeric thresholds; '==' or '!=' for categorical levels.",
    )
    value: float | str = Field(description="Numeric threshold or categorical level.")

    @model_validator(mode="after")
    def _validate_operator_value_compatibility(self) -> Predicate:
        """Validate that ordering operators only compare against numbers.

        Returns:
            Predicate: The validated model instance.

        Raises:
            ValueError: If `"<="` or `">"` is paired with a string value.
        """
        if self.operator in _ORDERING_OPS and isinstance(self.value, str):
            raise ValueError(f"Ordering operator '{self.operator}' requires a numeric value")
        return self

    def __str__(self) -> str:
        """Return the predicate as `"<variable> <operator> <value>"`."""
        return f"{self.variable} {self.operator} {self.value}"

    def eval(self, x: FeatureValue) -> bool:
        """Evaluate this predicate against a feature value.

        Args:
            x (FeatureValue): The feature value to test.

        Returns:
            bool: `True` if the predicate holds for `x`.
        """
        return _OPS[self.operator](x, self.value)


class ClassificationRule(BaseModel):
    """The root-to-leaf path of one leaf, with the leaf's prediction.

    Attributes:
        predicates (list[Predicate]): Conditions from root to leaf. Empty for
            a single-leaf tree.
        prediction (str): Predicted label at the leaf.
        samples (int): Training examples that reached the leaf.
        confidence (float): Probability of the predicted label at the leaf.
        distribution (dict[str, float]): Full label distribution at the leaf.

    Examples:
        >>> rule = ClassificationRule(
        ...     predicates=[Predicate(variable="age", operator="<=", value=34.5)],
        ...     prediction="buyer",
        ...     samples=42,
        ...     confidence=0.81,
        ...     distribution={"buyer": 0.81, "non_buyer": 0.19},
        ... )
        >>> rule.matches({"age": 30.0})
        True
    """

    model_config = ConfigDict(frozen=True)

    predicates: list[Predicate] = Field(description="Conditions from root to leaf; empty for a single leaf.")
    prediction: str = Field(description="Predicted label at the leaf.")
    samples: int = Field(ge=1, description="Training examples that reached the leaf.")
    confidence: float = Field(ge=0.0, le=1.0, description="Probability of the predicted label.")
    distribution: dict[str, float] = Field(description="Label distribution at the leaf.")

    def matches(self, values: Mapping[str, FeatureValue]) -> bool:
        """Return True if every predicate holds for the named feature `values`."""
        return all(predicate.eval(values[predicate.variable]) for predicate in self.predicates)

    def __str__(self) -> str:
        """Return the rule as `"IF a AND b THEN label (confidence, n)"`."""
        conditions = " AND ".join(str(predicate) for predicate in self.predicates) or "TRUE"
        return f"IF {conditions} THEN {self.prediction} (confidence={self.confidence:.2f}, n={self.samples})"


# ---------------------------------------------------------------------------
# Public interface -- Traversal
# ---------------------------------------------------------------------------


def iter_nodes(node: TreeNode) -> Iterator[TreeNode]:
    """Yield `node` and all its descendants in pre-order, left before right."""
    yield node
    if isinstance(node, SplitNode):
        yield from iter_nodes(node.left)
        yield from iter_nodes(node.right)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

_ORDERING_OPS: frozenset[str] = frozenset({"<=", ">"})

_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "<=": operator.le,
    ">": operator.gt,
    "==": operator.eq,
    "!=": operator.ne,
}


def _depth(node: TreeNode) -> int:
    if isinstance(node, LeafNode):
        return 0
    return 1 + max(_depth(node.left), _depth(node.right))


SplitNode.model_rebuild()
FittedTree.model_rebuild()
