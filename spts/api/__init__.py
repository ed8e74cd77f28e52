"""
API module for the REST implementation.
"""

from .rest_api import SptsRestAPI, status_for

__all__ = [
    "SptsRestAPI",
    "status_for",
]
