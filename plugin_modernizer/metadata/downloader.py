"""
HTTP access to remote metadata endpoints.
"""

import json
import logging
from typing import Any, Optional

import requests

from ..exceptions import MetadataDownloadError
from ..version import get_user_agent

logger = logging.getLogger(__name__)


class MetadataDownloader:
    """Plain HTTP GET client for JSON, CSV and XML metadata."""
    
    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        """
        Initialize the downloader.
        
        Args:
            timeout: Timeout in seconds for each request
            session: Optional pre-configured requests session
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': get_user_agent(),
        })
    
    def fetch_text(self, url: str, accept: str = '*/*') -> str:
        """
        Download a resource as text.
        
        Args:
            url: Resource URL
            accept: Value of the Accept header
            
        Returns:
            Response body
            
        Raises:
            MetadataDownloadError: On network errors or non-200 responses
        """
        logger.debug(f"Downloading {url}")
        try:
            response = self.session.get(url, timeout=self.timeout, headers={'Accept': accept})
        except requests.exceptions.Timeout as e:
            raise MetadataDownloadError(f"timed out after {self.timeout}s", url) from e
        except requests.exceptions.RequestException as e:
            raise MetadataDownloadError(str(e), url) from e
        
        if response.status_code != 200:
            raise MetadataDownloadError(f"unexpected HTTP status {response.status_code}", url)
        return response.text
    
    def fetch_json(self, url: str) -> Any:
        """
        Download and decode a JSON document.
        
        Raises:
            MetadataDownloadError: On network errors, non-200 responses or invalid JSON
        """
        text = self.fetch_text(url, accept='application/json')
        try:
            return json.loads(text)
        except ValueError as e:
            raise MetadataDownloadError(f"invalid JSON: {e}", url) from e
