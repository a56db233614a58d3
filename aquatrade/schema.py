SCHEMA_SQL = r"""
-- One row per persisted collection (customers, parties, products, ...).
-- value is the whole collection as a JSON array, rewritten on every mutation.
CREATE TABLE IF NOT EXISTS kv_store (
  key TEXT PRIMARY KEY,
  value BLOB NOT NULL,
  updated_at TEXT NOT NULL               -- ISO datetime (UTC)
);
"""
