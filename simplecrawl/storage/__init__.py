"""
Storage layer for fetched pages.
"""

from .file_store import FileStore, StorageError, url_key

__all__ = ['FileStore', 'StorageError', 'url_key']
