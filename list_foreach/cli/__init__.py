"""CLI for list-foreach."""
