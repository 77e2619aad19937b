"""
File storage for fetched page bodies.

Each body is written to ``{directory}/{md5(url)}.html``. A re-fetch of the same
URL overwrites the previous file.
"""

import hashlib
import logging
from pathlib import Path
from typing import Dict, Any, Union


class StorageError(Exception):
    """Raised when a page body cannot be written or read."""
    pass


def url_key(url: str) -> str:
    """Stable storage key for a URL."""
    return hashlib.md5(url.encode('utf-8')).hexdigest()


class FileStore:
    """Write-by-key store rooted at the crawl working directory."""

    SUFFIX = '.html'

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'total_stored': 0,
            'storage_errors': 0,
            'total_size_bytes': 0
        }

    def path_for(self, url: str) -> Path:
        return self.directory / f"{url_key(url)}{self.SUFFIX}"

    async def store(self, url: str, body: bytes) -> Path:
        """Write ``body`` for ``url`` and return the file path."""
        file_path = self.path_for(url)
        try:
            with open(file_path, 'wb') as f:
                f.write(body)
        except OSError as e:
            self.stats['storage_errors'] += 1
            raise StorageError(f"Error storing content for {url}: {e}") from e

        self.stats['total_stored'] += 1
        self.stats['total_size_bytes'] += len(body)
        self.logger.debug(f"Stored {len(body)} bytes to {file_path}")
        return file_path

    def get_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        return self.stats.copy()
