SCHEMA_SQL = r"""
-- Named slots, each holding one JSON-encoded array
CREATE TABLE IF NOT EXISTS slots (
  name TEXT PRIMARY KEY,
  payload TEXT NOT NULL,                 -- JSON array
  updated_at TEXT NOT NULL               -- ISO datetime (UTC)
);
"""
