"""Project version constants.

These constants are used in logs and embedded in produced datasets (Parquet,
run manifest) so that exported artifacts can be traced back to a specific
table and schema version.
"""

DATASET_NAME: str = "shovel_levels"
DATASET_VERSION: str = "0.1.0"

SCHEMA_VERSION: int = 1
