"""
Storage Infrastructure Module

Provides object storage adapters.
"""

from . import object_storage

__all__ = [
    'object_storage'
]
