"""Walks through a full cartkit session on a synthetic customer survey.

cartkit logging is disabled by default. This script opts in with
``enable_logging()`` so each pipeline step prints one ``FIT`` line.

Key steps shown here:

- ``load_dataset``: turns a Polars table into a schema-checked dataset,
  excluding the respondent identifier automatically.
- ``stratified_split``: holds out a test set with the same buyer share.
- ``tune_grid``: picks ``max_depth`` and ``min_n`` by cross-validation.
- ``build_tree`` / ``evaluate``: fits the chosen config and scores it on the
  held-out data.
- ``render_tree`` / ``extract_rules`` / ``compute_feature_importance``:
  explain the fitted tree.
"""

import polars as pl

from cartkit import (
    build_tree,
    compute_feature_importance,
    enable_logging,
    evaluate,
    extract_rules,
    load_dataset,
    render_tree,
    stratified_split,
    tune_grid,
)

N_RESPONDENTS = 240
REGIONS = ("east", "north", "south", "west")

ages = [18 + (i * 7) % 50 for i in range(N_RESPONDENTS)]
regions = [REGIONS[i % len(REGIONS)] for i in range(N_RESPONDENTS)]
visits = [(i * 5) % 11 for i in range(N_RESPONDENTS)]

df_survey = pl.DataFrame({
    "respondent_id": [f"R-{i:04d}" for i in range(N_RESPONDENTS)],
    "age": ages,
    "region": regions,
    "monthly_visits": visits,
}).with_columns(
    pl.when((pl.col("monthly_visits") >= 6) | ((pl.col("region") == "south") & (pl.col("age") < 30)))
    .then(pl.lit("buyer"))
    .otherwise(pl.lit("browser"))
    .alias("outcome")
)

with enable_logging(level="FIT"):
    dataset = load_dataset(df_survey, "outcome")
    train, test = stratified_split(dataset, test_fraction=0.25, seed=42)

    tuning = tune_grid(train, max_depths=[1, 2, 3, 5], min_ns=[2, 5, 10], n_folds=5, seed=42)
    print(f"\n{tuning.to_text()}\n")

    tree = build_tree(train, tuning.best_config)
    result = evaluate(tree, test)

print(f"\n{result.to_text()}\n")
print(render_tree(tree))
print()
for rule in extract_rules(tree):
    print(rule)
print()
for feature, importance in compute_feature_importance(tree).items():
    print(f"{feature:<16}{importance:.4f}")
