"""
Client module for the remote custody API.

Only the organization public key lookup is implemented; signing itself is
performed by the custody service.
"""

from .organization import OrganizationKeyProvider

__all__ = ["OrganizationKeyProvider"]
