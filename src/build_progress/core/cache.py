"""Cross-run cache of build totals."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .models import CacheRecord, CacheError

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path("node_modules") / ".progress"
CACHE_FILENAME = "index.json"


class CacheStore:
    """
    Stores the totals of the last successful build of a project.

    File: {project_dir}/{cache_dir}/index.json
    Value: {"cacheTransformCount": int, "cacheChunkCount": int}

    Absent, unreadable and malformed files all read as "no cache".
    """

    def __init__(
        self,
        project_dir: Optional[Union[str, Path]] = None,
        cache_dir: Optional[Union[str, Path]] = None
    ):
        """Initialize cache store.

        Args:
            project_dir: Project working directory (defaults to cwd)
            cache_dir: Cache directory, relative paths resolve against project_dir
        """
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        cache_dir = Path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR
        if not cache_dir.is_absolute():
            cache_dir = self.project_dir / cache_dir
        self.cache_dir = cache_dir
        self.cache_path = cache_dir / CACHE_FILENAME

    def exists(self) -> bool:
        """Check whether a usable record is stored.

        Returns:
            True if a valid record is present, False otherwise
        """
        return self._read() is not None

    def load(self) -> CacheRecord:
        """Load the stored record.

        Returns:
            Stored CacheRecord, or an all-zero record when absent
        """
        record = self._read()
        if record is None:
            return CacheRecord(transform_count=0, chunk_count=0)
        return record

    def save(self, record: CacheRecord) -> bool:
        """Replace the stored record.

        Args:
            record: Totals to persist

        Returns:
            True if written, False if the write failed
        """
        tmp_path = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.cache_dir, prefix=".index-", suffix=".tmp"
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(record.to_dict(), f)
            os.replace(tmp_path, self.cache_path)
            tmp_path = None
            logger.info(
                f"Saved build totals to {self.cache_path}: "
                f"{record.transform_count} transforms, {record.chunk_count} chunks"
            )
            return True

        except OSError as e:
            logger.error(f"Failed to save progress cache: {e}")
            return False

        finally:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)

    def clear(self) -> bool:
        """Remove the stored record.

        Returns:
            True if a file was removed, False otherwise
        """
        try:
            self.cache_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to remove progress cache: {e}")
            return False

    def _read(self) -> Optional[CacheRecord]:
        """Read and validate the cache file.

        Returns:
            CacheRecord if present and valid, None otherwise
        """
        try:
            raw = json.loads(self.cache_path.read_text(encoding='utf-8'))
            return CacheRecord.from_dict(raw)

        except (FileNotFoundError, NotADirectoryError):
            return None

        except (json.JSONDecodeError, UnicodeDecodeError, CacheError) as e:
            logger.warning(f"Ignoring malformed progress cache {self.cache_path}: {e}")
            return None

        except OSError as e:
            logger.error(f"Failed to read progress cache: {e}")
            return None
