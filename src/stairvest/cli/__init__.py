"""Command-line interface for StairVest."""
