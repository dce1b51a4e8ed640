"""Background processing pipelines."""
