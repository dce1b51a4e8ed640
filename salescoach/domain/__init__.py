"""Domain entities shared by the pipeline, stores and views."""
