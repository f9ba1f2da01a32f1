import pyarrow as pa

# -----------------------------
# Wire schema: exactly what the JSON asset carries (everything is a string)
# -----------------------------
SHOVEL_LEVELS_WIRE_SCHEMA = pa.schema([
    pa.field("ShovelID", pa.string()),
    pa.field("Level", pa.string()),
    pa.field("Gems", pa.string()),
    pa.field("luck", pa.string()),        # numeric or ""
    pa.field("Modifier", pa.string()),    # always "" in this data set
    pa.field("Value", pa.string()),       # always "" in this data set
    pa.field("mod_detail", pa.string()),  # always "" in this data set
])

# -----------------------------
# Storage schema: typed columns, same names as the wire schema
# -----------------------------
SHOVEL_LEVELS_SCHEMA = pa.schema([
    pa.field("ShovelID", pa.string(), nullable=False),
    pa.field("Level", pa.int16(), nullable=False),    # 0..49
    pa.field("Gems", pa.int32(), nullable=False),     # currency cost at this level
    pa.field("luck", pa.float64()),                   # None when empty on the wire
    pa.field("Modifier", pa.string()),
    pa.field("Value", pa.string()),
    pa.field("mod_detail", pa.string()),
])
