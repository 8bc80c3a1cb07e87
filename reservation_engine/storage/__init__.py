"""Storage package - persistence and locking."""
