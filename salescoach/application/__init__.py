"""Persistence contracts consumed by the pipeline."""
