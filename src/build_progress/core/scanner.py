"""Source tree scanning."""

import logging
import os
from pathlib import Path
from typing import Iterable, Union

logger = logging.getLogger(__name__)

# Markup/template, script and stylesheet families
DEFAULT_EXTENSIONS = (
    "vue", "ts", "js", "jsx", "tsx",
    "css", "scss", "sass", "styl", "less",
)


def normalize_extensions(extensions: Iterable[str]) -> frozenset:
    """Lower-case extensions and strip any leading dot."""
    return frozenset(ext.lower().lstrip(".") for ext in extensions if ext.strip("."))


def count_source_files(
    root: Union[str, Path],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS
) -> int:
    """Count files under root whose extension is tracked.

    Args:
        root: Directory to scan recursively
        extensions: Allowed extensions, with or without the leading dot

    Returns:
        Number of matching files, 0 if root cannot be scanned
    """
    root = Path(root)
    allowed = normalize_extensions(extensions)

    try:
        is_dir = root.is_dir()
    except OSError as e:
        logger.warning(f"Cannot access source root {root}, no files counted: {e}")
        return 0

    if not is_dir:
        logger.warning(f"Source root {root} is not a directory, no files counted")
        return 0

    def _on_error(error: OSError) -> None:
        logger.warning(f"Skipping unreadable path during scan: {error}")

    count = 0
    for _dirpath, _dirnames, filenames in os.walk(root, onerror=_on_error):
        for filename in filenames:
            suffix = Path(filename).suffix
            if suffix and suffix[1:].lower() in allowed:
                count += 1

    logger.debug(f"Counted {count} tracked source files under {root}")
    return count
