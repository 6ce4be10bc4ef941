"""Command-line interface for gridflow."""
