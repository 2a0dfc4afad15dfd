"""Command-line tools built on the grpcer plugin."""
