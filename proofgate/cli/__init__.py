"""Command-line tools for the proof verification gateway."""
