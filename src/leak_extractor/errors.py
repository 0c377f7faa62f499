"""Custom exceptions for the leak extractor domain."""


class LeakExtractorError(Exception):
    """Base exception for this project."""


class ConfigError(LeakExtractorError):
    """Raised when runtime configuration is invalid."""


class BackendError(LeakExtractorError):
    """Raised when the search backend cannot serve a request."""


class ConnectivityError(BackendError):
    """Raised when no connection to the search endpoint could be established."""


class ClusterHealthError(BackendError):
    """Raised when the cluster reports a red health status."""


class PageFetchError(BackendError):
    """Raised when a scroll page cannot be fetched mid-extraction."""


class EmptyResultError(LeakExtractorError):
    """Raised when the query matches no documents."""


class DecodeError(LeakExtractorError):
    """Raised when a hit payload cannot be decoded into a record."""
