"""Command-line tools for stock cards."""
