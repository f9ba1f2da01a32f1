"""Contracts and canonical schema.

The contracts package defines:
- the canonical Arrow schemas (wire and storage) for the shovel level table
- wire-format validation and typed conversion
- storage casting helpers

Main exports:
- ShovelLevelEntry, parse_entry, validate_wire_record, WIRE_FIELDS
- ContractError, ValidationError
- table_sha256
"""

from contracts import shovel_contracts

# Explicit re-exports to satisfy ruff F401
__all__ = [
    "ContractError",
    "PLACEHOLDER_FIELDS",
    "ShovelLevelEntry",
    "ValidationError",
    "WIRE_FIELDS",
    "normalize_str",
    "parse_entry",
    "table_sha256",
    "validate_wire_record",
]

# Re-export for convenience
ContractError = shovel_contracts.ContractError
PLACEHOLDER_FIELDS = shovel_contracts.PLACEHOLDER_FIELDS
ShovelLevelEntry = shovel_contracts.ShovelLevelEntry
ValidationError = shovel_contracts.ValidationError
WIRE_FIELDS = shovel_contracts.WIRE_FIELDS
normalize_str = shovel_contracts.normalize_str
parse_entry = shovel_contracts.parse_entry
table_sha256 = shovel_contracts.table_sha256
validate_wire_record = shovel_contracts.validate_wire_record
