"""
staplus_policy.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide the catalog schema, engine/session setup, repositories and the
  SQL-backed `EntityLoader` used by the policy engine.
"""

# Package marker.
