"""
Role names stored on users and embedded in access tokens.
"""

ADMIN = "admin"
REQUESTER = "requester"

ALL_ROLES = (ADMIN, REQUESTER)
