"""
tiermint.access — role-based access control shared by the collection and the
royalty distributor.
"""

from .roles import ARTIST_ROLE, DEFAULT_ADMIN_ROLE, RoleTable, derive_role_id, normalize_role

__all__ = ["ARTIST_ROLE", "DEFAULT_ADMIN_ROLE", "RoleTable", "derive_role_id", "normalize_role"]
