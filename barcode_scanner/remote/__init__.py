"""
==============================================================================
Remote Package
==============================================================================

HTTP clients for the product/history service and the external product
source.

==============================================================================
"""

from .client import RemoteServiceClient, SubmissionResult
from .product_source import OpenFoodFactsSource

__all__ = ["RemoteServiceClient", "SubmissionResult", "OpenFoodFactsSource"]
