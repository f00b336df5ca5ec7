"""
staplus_policy.services

Service layer.

Responsibilities:
- Own transactions: guard evaluation, writes and audit commit or roll back together.
"""

# Package marker.
