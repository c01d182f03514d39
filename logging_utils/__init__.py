"""
Logging Utils - Run and Listing Logging
========================================
Per-run step logs and batch-level aggregation.
"""

from logging_utils.listing_logger import ListingProcessingLog
from logging_utils.run_logger import RunLogger

__all__ = [
    'ListingProcessingLog',
    'RunLogger',
]
