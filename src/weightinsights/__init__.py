"""Weight trend analytics with a reactive state store."""

__version__ = "0.1.0"
