# docflow/document/discovery.py
# ============================================================
# Document Discovery — Input Enumeration
# ============================================================
# Turns an input root (a single file or a directory) into the
# ordered set of files a pipeline will process.
#
# Rules:
#   - Directories are scanned flat: direct entries only, never
#     recursively. Sub-directories are ignored.
#   - Extensions are matched case-insensitively against an
#     allow-list normalised to carry a leading dot.
#   - Files without an extension are excluded, never an error.
#   - The result is sorted lexicographically by absolute path.
#
# Usage:
#   from docflow.document.discovery import DocumentDiscovery
#   discovery = DocumentDiscovery(DOCUMENT_EXTENSIONS)
#   inputs = discovery.discover("/data/receipts")
#   for path in inputs:
#       print(path.name)
# ============================================================

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Union

from docflow.errors import DiscoveryError
from docflow.utils.logger import get_logger

logger = get_logger(__name__)

# Documents handled by the extraction tool (text, receipts, contracts)
DOCUMENT_EXTENSIONS = frozenset({
    ".pdf", ".docx", ".doc", ".txt",
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff",
})

# Containers handled by the media transcoder
VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm", ".m4v",
    ".mpg", ".mpeg", ".3gp", ".asf", ".rm", ".rmvb", ".vob", ".ts", ".mts",
})


def normalize_extension(extension: str) -> str:
    """
    Lower-case an extension and make sure it starts with a dot.

    Returns an empty string for an empty extension so callers can
    treat "no extension" as a plain non-match.

    Example:
        >>> normalize_extension("PDF")
        '.pdf'
    """
    extension = extension.strip().lower()
    if not extension:
        return ""
    if not extension.startswith("."):
        extension = "." + extension
    return extension


# ============================================================
# Data Classes
# ============================================================

@dataclass(frozen=True)
class InputSet:
    """
    Ordered, immutable set of files selected for one run.

    Attributes:
        root: The input root the set was built from (absolute).
        files: Absolute file paths, sorted lexicographically.
        is_batch: True when the root is a directory.
    """
    root: Path
    files: tuple[Path, ...]
    is_batch: bool

    def __iter__(self) -> Iterator[Path]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __bool__(self) -> bool:
        return bool(self.files)


# ============================================================
# Document Discovery
# ============================================================

class DocumentDiscovery:
    """
    Enumerates eligible input files for a pipeline.

    Example:
        >>> discovery = DocumentDiscovery({".pdf", "PNG"})
        >>> inputs = discovery.discover("/app/input/")
        >>> print(f"Found {len(inputs)} files")
    """

    def __init__(self, extensions: Iterable[str]):
        """
        Initialize discovery with an extension allow-list.

        Args:
            extensions: Accepted extensions, with or without a leading
                        dot, any case.
        """
        self.extensions = frozenset(
            ext for ext in (normalize_extension(e) for e in extensions) if ext
        )

    def accepts(self, path: Union[str, Path]) -> bool:
        """Check whether a file's extension is in the allow-list."""
        extension = normalize_extension(Path(path).suffix)
        if not extension:
            logger.debug(f"No extension for file: {Path(path).name}")
            return False
        return extension in self.extensions

    def discover(self, root: Union[str, Path]) -> InputSet:
        """
        Build the input set for a file or a directory.

        Args:
            root: Path to a single file or to a directory.

        Returns:
            InputSet with matching files sorted by absolute path. An
            empty set means "nothing matched", not an error.

        Raises:
            DiscoveryError: If the root does not exist or cannot be listed.
        """
        root = Path(root)
        if not root.exists():
            raise DiscoveryError(root, "path does not exist")

        root = root.resolve()

        if root.is_dir():
            files = self._scan_directory(root)
            return InputSet(root=root, files=tuple(sorted(files, key=str)), is_batch=True)

        files = [root] if root.is_file() and self.accepts(root) else []
        return InputSet(root=root, files=tuple(files), is_batch=False)

    def _scan_directory(self, dir_path: Path) -> list[Path]:
        """
        List the direct entries of a directory that match the allow-list.

        Subdirectories are not traversed (flat scan only).
        """
        try:
            entries = list(dir_path.iterdir())
        except OSError as e:
            raise DiscoveryError(dir_path, f"failed to list directory: {e}") from e

        logger.debug(f"Found {len(entries)} items in {dir_path}")

        files = []
        for entry in entries:
            if entry.is_dir():
                continue
            if self.accepts(entry):
                files.append(entry)
                logger.debug(f"Added to processing list: {entry.name}")
            else:
                logger.debug(f"Unsupported file type: {entry.name}")
        return files
