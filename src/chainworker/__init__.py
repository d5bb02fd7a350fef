"""Responder and updater workers bridging a CosmWasm task registry with off-chain services."""

__version__ = "0.1.0"
