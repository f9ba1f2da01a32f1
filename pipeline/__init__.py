"""Pipeline components.

This package contains the table integrity checks, the Parquet writer, the
DuckDB query layer, the JSON/CSV export and the build that ties them together.
"""
