"""Ephemeral deposit accounts."""

from bridgelet.accounts.ephemeral import AccountInfo, EphemeralAccount, SweepAuthority

__all__ = ["AccountInfo", "EphemeralAccount", "SweepAuthority"]
