"""Bridgelet: ephemeral deposit accounts with signature-gated sweeps."""

__version__ = "0.1.0"
