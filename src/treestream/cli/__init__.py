"""Command-line interface for tree-stream."""
