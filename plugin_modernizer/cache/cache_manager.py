"""
Cache Manager

Persists named, path-scoped entries as JSON files under a root directory.
Path "." is the shared scope directly under the root; any other path is a
private scope (typically one per plugin).
"""

import json
import logging
import os
import shutil
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from ..exceptions import CacheError

logger = logging.getLogger(__name__)

ROOT_PATH = "."

E = TypeVar('E', bound='CacheEntry')


class CacheEntry(ABC):
    """A unit of durable data identified by (path, key)."""
    
    def __init__(self, key: str, path: str = ROOT_PATH):
        self.key = key
        self.path = path
    
    @abstractmethod
    def to_payload(self) -> Any:
        """Return a JSON serializable payload."""
        pass
    
    @classmethod
    @abstractmethod
    def from_payload(cls: Type[E], payload: Any, key: str, path: str = ROOT_PATH) -> E:
        """
        Rebuild an entry from a payload produced by to_payload.
        
        Raises:
            KeyError, TypeError, ValueError: If the payload has the wrong shape
        """
        pass


class JsonCacheEntry(CacheEntry):
    """Cache entry holding a plain JSON document."""
    
    def __init__(self, key: str, data: Any, path: str = ROOT_PATH):
        super().__init__(key, path)
        self.data = data
    
    def to_payload(self) -> Any:
        return self.data
    
    @classmethod
    def from_payload(cls, payload: Any, key: str, path: str = ROOT_PATH) -> 'JsonCacheEntry':
        return cls(key, payload, path)
    
    def __eq__(self, other):
        return (isinstance(other, JsonCacheEntry) and self.key == other.key
                and self.path == other.path and self.data == other.data)
    
    def __repr__(self):
        return f"JsonCacheEntry(key={self.key!r}, path={self.path!r})"


class CacheManager:
    """Manages persistent cache entries below a root directory."""
    
    def __init__(self, cache_dir: str, max_age_days: int = 0):
        """Initialize cache manager.
        
        Args:
            cache_dir: Root directory for cache files
            max_age_days: Entries older than this are treated as absent (0 disables expiry)
        """
        self.cache_dir = Path(cache_dir)
        self.max_age_days = max_age_days
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()
    
    def root(self) -> str:
        """Path of the shared scope."""
        return ROOT_PATH
    
    def location(self, path: str, key: str) -> Path:
        """
        Resolve the file backing an entry.
        
        Args:
            path: Scope of the entry, "." for the shared scope
            key: Entry key
            
        Returns:
            Path of the cache file
            
        Raises:
            ValueError: If key or path would escape the cache root
        """
        if not key or os.path.isabs(key) or '..' in Path(key).parts:
            raise ValueError(f"Invalid cache key: {key!r}")
        path = path or ROOT_PATH
        if os.path.isabs(path) or '..' in Path(path).parts:
            raise ValueError(f"Invalid cache path: {path!r}")
        directory = self.cache_dir if path == ROOT_PATH else self.cache_dir / path
        return directory / key
    
    def _lock_for(self, path: str, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault((path or ROOT_PATH, key), threading.Lock())
    
    def _is_expired(self, cache_file: Path) -> bool:
        if not self.max_age_days:
            return False
        age_seconds = time.time() - cache_file.stat().st_mtime
        return age_seconds > self.max_age_days * 86400
    
    def get(self, path: str, key: str, entry_type: Type[E]) -> Optional[E]:
        """
        Load an entry.
        
        Args:
            path: Scope of the entry
            key: Entry key
            entry_type: CacheEntry subclass to deserialize into
            
        Returns:
            The entry, or None when nothing (or nothing fresh) is stored
            
        Raises:
            CacheError: If the stored payload is corrupt or unreadable
        """
        cache_file = self.location(path, key)
        with self._lock_for(path, key):
            if not cache_file.is_file():
                logger.debug(f"Cache miss for {key} in {path}")
                return None
            if self._is_expired(cache_file):
                logger.debug(f"Cache entry {key} in {path} is older than {self.max_age_days} days")
                return None
            try:
                with open(cache_file, 'r', encoding='utf-8') as f:
                    payload = json.load(f)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise CacheError(f"Unreadable payload: {e}", str(cache_file)) from e
        
        try:
            entry = entry_type.from_payload(payload, key=key, path=path)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CacheError(f"Unexpected payload for {entry_type.__name__}: {e}", str(cache_file)) from e
        
        logger.debug(f"Cache hit for {key} in {path}")
        return entry
    
    def put(self, entry: CacheEntry) -> Path:
        """
        Persist an entry, replacing any previous value.
        
        Args:
            entry: Entry to store at (entry.path, entry.key)
            
        Returns:
            Path of the written cache file
        """
        cache_file = self.location(entry.path, entry.key)
        content = json.dumps(entry.to_payload(), indent=2, ensure_ascii=False)
        
        with self._lock_for(entry.path, entry.key):
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            # Write then rename so readers never see a partial file
            fd, tmp_name = tempfile.mkstemp(dir=cache_file.parent, prefix=f".{cache_file.name}.", suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(content)
                os.replace(tmp_name, cache_file)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        
        logger.debug(f"Cached {entry.key} in {entry.path}")
        return cache_file
    
    def get_or_fetch(self, path: str, key: str, entry_type: Type[E], fetch: Callable[[], E]) -> E:
        """
        Load an entry, fetching and persisting it when absent.
        
        A corrupt entry is discarded and fetched again.
        
        Args:
            path: Scope of the entry
            key: Entry key
            entry_type: CacheEntry subclass to deserialize into
            fetch: Callable producing a fresh entry
            
        Returns:
            Cached or freshly fetched entry
        """
        try:
            entry = self.get(path, key, entry_type)
        except CacheError as e:
            logger.warning(f"Discarding cache entry: {e}")
            entry = None
        
        if entry is None:
            entry = fetch()
            entry.key = key
            entry.path = path
            self.put(entry)
        return entry
    
    def wipe(self) -> None:
        """Delete every cached entry under the root directory."""
        with self._locks_guard:
            if self.cache_dir.exists():
                shutil.rmtree(self.cache_dir)
                logger.info(f"Removed cache directory {self.cache_dir}")
            else:
                logger.debug(f"Cache directory {self.cache_dir} does not exist, nothing to wipe")
    
    def scoped(self, cache_dir: str) -> 'CacheManager':
        """Create a store rooted at another directory with the same settings."""
        return CacheManager(cache_dir, max_age_days=self.max_age_days)
    
    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        files = [p for p in self.cache_dir.rglob('*') if p.is_file()] if self.cache_dir.exists() else []
        return {
            'cache_dir': str(self.cache_dir),
            'entries': len(files),
            'size_bytes': sum(p.stat().st_size for p in files),
        }
