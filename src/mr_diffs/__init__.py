"""Merge request diff collections with batching and single-path views."""

__version__ = "0.1.0"
