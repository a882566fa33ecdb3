"""Read-only access to ticket owners."""

from .directory import InMemoryOwnerDirectory, Owner, OwnerDirectory, SqlOwnerDirectory, lookup_owners

__all__ = ["InMemoryOwnerDirectory", "Owner", "OwnerDirectory", "SqlOwnerDirectory", "lookup_owners"]
