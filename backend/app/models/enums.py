"""
User roles enumeration.

Defines the role types for the parcel tracking system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Registers parcels, reads everything, manages users
        OWNER: Reads and updates the parcels assigned to them (default role)
    """
    ADMIN = "admin"
    OWNER = "owner"
