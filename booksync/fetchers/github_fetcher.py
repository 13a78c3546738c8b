"""
GitHub REST API client used as the content source for book sync.

Handles authentication, retries, rate limiting and maps every transport or
HTTP failure to UpstreamError.
"""

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import UpstreamError
from .base_fetcher import ContentSource

logger = logging.getLogger('booksync.fetchers.github')


class GithubClient(ContentSource):
    """GitHub REST API client with retry logic and rate limiting."""

    DEFAULT_API_URL = 'https://api.github.com'
    DEFAULT_TIMEOUT = 10
    DEFAULT_MAX_RETRIES = 3
    DEFAULT_RETRY_BACKOFF = 0.5
    DEFAULT_RATE_LIMIT = 0.0

    def __init__(
        self,
        access_token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        verify_ssl: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff_factor: float = DEFAULT_RETRY_BACKOFF,
        rate_limit: float = DEFAULT_RATE_LIMIT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize GitHub client.

        Args:
            access_token: OAuth access token of the admin who connected GitHub
            api_url: GitHub API base URL
            verify_ssl: Whether to verify SSL certificates
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries for failed requests
            retry_backoff_factor: Backoff factor for retries
            rate_limit: Minimum seconds between requests (0 = no limit)
            session: Pre-built session (tests)
        """
        super().__init__(logger or logging.getLogger('booksync.fetchers.github'))
        self.api_url = api_url.rstrip('/')
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.rate_limit = rate_limit
        self._last_request_time = 0.0

        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'booksync'
        })
        if access_token:
            self.session.headers['Authorization'] = f'Bearer {access_token}'

        if session is None:
            retry_strategy = Retry(
                total=max_retries,
                backoff_factor=retry_backoff_factor,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["HEAD", "GET", "OPTIONS"],
                raise_on_status=False
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            self.session.mount('http://', adapter)
            self.session.mount('https://', adapter)

        self.logger.debug(f"Initialized GitHub client for {self.api_url} (timeout={timeout}s)")

    @classmethod
    def from_config(cls, config: Dict[str, Any], access_token: Optional[str] = None) -> 'GithubClient':
        """Build a client from the `github` config section."""
        github = config.get('github', {}) or {}
        return cls(
            access_token=access_token or github.get('access_token'),
            api_url=github.get('api_url', cls.DEFAULT_API_URL),
            verify_ssl=github.get('verify_ssl', True),
            timeout=github.get('timeout', cls.DEFAULT_TIMEOUT),
            max_retries=github.get('max_retries', cls.DEFAULT_MAX_RETRIES),
            retry_backoff_factor=github.get('retry_backoff_factor', cls.DEFAULT_RETRY_BACKOFF),
            rate_limit=github.get('rate_limit', cls.DEFAULT_RATE_LIMIT)
        )

    def _handle_rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        if self.rate_limit <= 0:
            return

        time_since_last = time.time() - self._last_request_time
        if time_since_last < self.rate_limit:
            sleep_time = self.rate_limit - time_since_last
            self.logger.debug(f"Rate limiting: sleeping {sleep_time:.2f}s")
            time.sleep(sleep_time)

        self._last_request_time = time.time()

    def _get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        allowed_status: tuple = ()
    ) -> requests.Response:
        """
        GET an API endpoint.

        Args:
            endpoint: Path below the API URL
            params: Query parameters
            allowed_status: Non-2xx status codes returned instead of raised

        Raises:
            UpstreamError: For timeouts, connection errors and HTTP errors
        """
        self._handle_rate_limit()
        url = f"{self.api_url}{endpoint}"

        start_time = time.time()
        self.logger.debug(f"GET {url} params={params}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout, verify=self.verify_ssl)
        except requests.exceptions.Timeout as e:
            self.logger.error(f"Request timeout after {self.timeout}s: GET {url}")
            raise UpstreamError(f"GitHub request timed out: {endpoint}") from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request error: GET {url} - {str(e)}")
            raise UpstreamError(f"GitHub request failed: {e}") from e

        elapsed = time.time() - start_time
        self.logger.debug(f"Response: {response.status_code} {url} ({elapsed:.3f}s)")

        if response.status_code in allowed_status or response.ok:
            return response

        message = self._error_message(response)
        if response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0':
            message = f"GitHub rate limit exceeded: {message}"
        self.logger.error(f"HTTP Error {response.status_code}: GET {url} - {message}")
        raise UpstreamError(message, status_code=response.status_code)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:500] or response.reason or 'Unknown error'
        if isinstance(data, dict) and data.get('message'):
            return data['message']
        return response.reason or 'Unknown error'

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from GitHub: {e}", status_code=response.status_code) from e

    def list_commits(self, repo: str, limit: int = 1) -> List[Dict[str, Any]]:
        owner, name = self.split_repo(repo)
        # GitHub answers 409 for a repository without commits
        response = self._get(
            f"/repos/{owner}/{name}/commits",
            params={'per_page': limit},
            allowed_status=(409,)
        )
        if response.status_code == 409:
            self.logger.info(f"Repository {repo} has no commits")
            return []

        commits = self._json(response)
        if not isinstance(commits, list):
            raise UpstreamError(f"Unexpected commits payload for {repo}")
        return commits[:limit]

    def list_directory(self, repo: str, path: str = '') -> List[Dict[str, Any]]:
        owner, name = self.split_repo(repo)
        entries = self._json(self._get(f"/repos/{owner}/{name}/contents/{quote(path.strip('/'))}"))
        if not isinstance(entries, list):
            raise UpstreamError(f"Path '{path}' in {repo} is not a directory")
        self.logger.debug(f"Listed {len(entries)} entries in {repo}:/{path}")
        return entries

    def get_file_content(self, repo: str, path: str) -> Dict[str, Any]:
        owner, name = self.split_repo(repo)
        payload = self._json(self._get(f"/repos/{owner}/{name}/contents/{quote(path.strip('/'))}"))
        if not isinstance(payload, dict) or payload.get('type') not in (None, 'file'):
            raise UpstreamError(f"Path '{path}' in {repo} is not a file")
        return payload

    def list_repos(self, per_page: int = 100) -> List[Dict[str, Any]]:
        """Repositories visible to the authenticated user (admin repo picker)."""
        repos = self._json(self._get('/user/repos', params={'per_page': per_page}))
        if not isinstance(repos, list):
            raise UpstreamError("Unexpected repositories payload")
        return repos


def create_content_source(config: Dict[str, Any], access_token: Optional[str] = None) -> ContentSource:
    """Factory for the configured content source."""
    return GithubClient.from_config(config, access_token=access_token)


__all__ = ['GithubClient', 'create_content_source']
