"""Command-line interface for Forum Bridge."""
