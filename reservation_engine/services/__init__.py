"""Services package - reservation lifecycle engine."""
