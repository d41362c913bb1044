"""Sweep controller: signature-gated, nonce-protected sweeps."""

from bridgelet.controller.sweep import SweepController, SweepReceipt

__all__ = ["SweepController", "SweepReceipt"]
