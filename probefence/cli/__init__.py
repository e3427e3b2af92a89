"""Command-line entry points for probefence."""
