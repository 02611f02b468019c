"""Core ranking engine for atuin-z.

Modules, leaves first:
    locator    - history database path resolution
    history    - read-only history record streaming
    aggregate  - per-directory visit statistics
    scoring    - frecency / frequency / recency scores
    exclusions - persisted exclusion list
    matching   - keyword matching and candidate filtering
    ranking    - result ordering and query orchestration
"""
