"""Exceptions for merge request diff operations."""


class DiffError(Exception):
    """Base exception for all diff operations."""


class NotFoundError(DiffError):
    """Raised when a revision pair, path or merge request cannot be resolved."""


class TreeResolutionError(DiffError):
    """Raised when the object store fails to produce one of the two trees."""


class FeatureDisabledError(DiffError):
    """Raised when batch loading is requested while the feature is off."""


class InvalidWindowError(DiffError):
    """Raised when a malformed pagination window reaches the paginator."""
