"""Sales coach recording processing pipeline."""

__version__ = "1.0.0"
