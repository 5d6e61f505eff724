"""
Repository-layer exceptions for scan, recommendation and tracking flows.
"""

from __future__ import annotations


class SiteScanRepositoryError(Exception):
    """Base exception for site scan repository failures."""


class CustomerNotFoundError(SiteScanRepositoryError):
    """Raised when a customer does not exist inside the requesting tenant."""


class ScanNotFoundError(SiteScanRepositoryError):
    """Raised when a scan does not belong to the given customer and tenant."""


class BatchNotFoundError(SiteScanRepositoryError):
    """Raised when a tracking batch does not exist inside the requesting tenant."""


class TrackingPersistenceError(SiteScanRepositoryError):
    """Raised when a set-oriented tracking write affects an unexpected row count."""
