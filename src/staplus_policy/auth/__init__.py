"""
staplus_policy.auth

Authentication package.

Responsibilities:
- JWT helpers and validation.
- FastAPI dependency turning a bearer token into an optional `Principal`.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The policy engine only depends on `auth.models.Principal`; token handling stays here.
