"""
staplus_policy.api

HTTP API package.

Responsibilities:
- FastAPI app factory, dependency wiring and routers.
"""

# Package marker.
