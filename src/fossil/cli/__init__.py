"""Command-line interface for the fossil store (``fossil``)."""
