"""Periodic node and NodeClaim metrics sampler for Karpenter clusters."""

__version__ = "0.1.0"
