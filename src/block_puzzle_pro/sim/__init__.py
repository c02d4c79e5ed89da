"""Command-line tools for exercising the engine."""
