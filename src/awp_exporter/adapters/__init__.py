"""Adapters connecting the core to HTTP frameworks, transports and logging."""
