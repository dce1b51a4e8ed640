"""Adapters for the on-device stores and the remote database."""
