"""HTTP framework adapters."""
