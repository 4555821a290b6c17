from __future__ import annotations

# One row per (analysis, overlay kind); payloads are the plain JSON maps the editor emits.
CREATE_OVERLAYS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS analysis_overlays (
  analysis_id TEXT NOT NULL,
  kind TEXT NOT NULL,
  updated_ms BIGINT,
  payload_json TEXT,
  PRIMARY KEY (analysis_id, kind)
);
"""

UPSERT_OVERLAY_SQL = """
INSERT OR REPLACE INTO analysis_overlays (analysis_id, kind, updated_ms, payload_json)
VALUES (?, ?, ?, ?)
"""

SELECT_ANALYSIS_SQL = """
SELECT kind, payload_json
FROM analysis_overlays
WHERE analysis_id = ?
"""

LIST_ANALYSES_SQL = """
SELECT analysis_id, COUNT(*) AS kinds, MAX(updated_ms) AS updated_ms
FROM analysis_overlays
GROUP BY analysis_id
ORDER BY updated_ms DESC
"""

DELETE_ANALYSIS_SQL = """
DELETE FROM analysis_overlays WHERE analysis_id = ?
"""
