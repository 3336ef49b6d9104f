"""Firefly AI categorizer: queue-backed transaction categorization for Firefly III."""
