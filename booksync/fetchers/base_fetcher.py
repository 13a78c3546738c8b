"""Abstract content source interface and common functionality."""

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..errors import UpstreamError, ValidationError


class ContentSource(ABC):
    """Abstract base class for repositories that hold book sources."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('booksync.fetchers')

    @abstractmethod
    def list_commits(self, repo: str, limit: int = 1) -> List[Dict[str, Any]]:
        """
        List the most recent commits of a repository, newest first.

        Args:
            repo: Repository identifier ("owner/name")
            limit: Maximum number of commits to return

        Returns:
            List of commit dictionaries, each with a 'sha' key
        """
        pass

    @abstractmethod
    def list_directory(self, repo: str, path: str = '') -> List[Dict[str, Any]]:
        """
        List entries of a repository directory.

        Returns:
            List of entries with at least 'path' and 'type' ('file' or 'dir')
        """
        pass

    @abstractmethod
    def get_file_content(self, repo: str, path: str) -> Dict[str, Any]:
        """
        Fetch a single file.

        Returns:
            Dictionary with base64 encoded 'content'
        """
        pass

    @staticmethod
    def decode_content(payload: Dict[str, Any]) -> str:
        """
        Decode the base64 'content' of a file payload to UTF-8 text.

        Raises:
            UpstreamError: If the payload has no content or is not valid base64/UTF-8
        """
        content = (payload or {}).get('content')
        if content is None:
            raise UpstreamError("File payload has no content")

        try:
            return base64.b64decode(content).decode('utf-8')
        except (binascii.Error, ValueError) as e:
            raise UpstreamError(f"Could not decode file content: {e}") from e

    @staticmethod
    def split_repo(repo: str) -> Tuple[str, str]:
        """Split "owner/name" into its parts."""
        parts = (repo or '').strip().strip('/').split('/')
        if len(parts) != 2 or not all(parts):
            raise ValidationError(f"Repository must be in 'owner/name' form: {repo!r}")
        return parts[0], parts[1]
