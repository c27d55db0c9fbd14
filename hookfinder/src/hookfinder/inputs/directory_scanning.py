# --- Directory scanning convenience -----------------------------------------
import logging
import os

from hookfinder.src.hookfinder.indexer import JavaIndexer

logger = logging.getLogger(__name__)


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def index_directory(indexer: JavaIndexer, root_dir: str) -> int:
    """
    Recursively index all .java files in a decompiled source tree. Walks in
    sorted order so enumeration order (and every ordinal) is reproducible.
    Returns the number of files indexed; unreadable files are logged and skipped.
    """
    indexed = 0
    for dirpath, dirnames, filenames in os.walk(root_dir):
        dirnames.sort()
        for fn in sorted(filenames):
            if fn.endswith(".java"):
                full = os.path.join(dirpath, fn)
                try:
                    src = read_text(full)
                    indexer.index_source(src, full)
                    indexed += 1
                except (OSError, ValueError) as e:
                    logger.warning("Failed to index %s: %s", full, e)
    logger.info("Indexed %d files: %d classes, %d methods",
                indexed, len(indexer.classes), indexer.method_count)
    return indexed
