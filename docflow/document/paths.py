# docflow/document/paths.py
# ============================================================
# Output Path Resolution & Input Fingerprints
# ============================================================
# resolve_output_path() validates the user-supplied output
# location once, before any file is processed:
#   - Batch mode: must be a directory (created if absent).
#   - Single-file mode: an existing file or directory is taken
#     as-is; otherwise its parent directory is created.
#
# derive_output_file() then maps each input file to its final
# artifact path, and fingerprint() names the staging directory
# that caches intermediate artifacts.
#
# Usage:
#   out = resolve_output_path("/data/out", is_batch=True)
#   target = derive_output_file(doc, out, True, "invoice.receipt.json", ".json")
# ============================================================

import hashlib
import re
import time
from pathlib import Path
from typing import Optional, Union

from docflow.errors import PathValidationError
from docflow.utils.logger import get_logger

logger = get_logger(__name__)

_HASH_CHUNK = 1024 * 1024


def resolve_output_path(output_path: Union[str, Path], is_batch: bool) -> Path:
    """
    Validate and normalize an output location for the processing mode.

    Args:
        output_path: Output file or directory given by the user.
        is_batch: True when the input is a directory.

    Returns:
        The absolute output path.

    Raises:
        PathValidationError: If batch output is an existing file, or a
            required directory cannot be created.
    """
    path = Path(output_path).expanduser()

    if is_batch:
        if path.exists():
            if not path.is_dir():
                raise PathValidationError(
                    f"For batch processing, output path must be a directory, "
                    f"but '{output_path}' is a file"
                )
        else:
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PathValidationError(
                    f"Cannot create output directory '{output_path}': {e}"
                ) from e
            logger.info(f"Created output directory: {path}")
        return path.resolve()

    # Single file: existing files are fine, overwrite is the caller's call
    if path.exists():
        return path.resolve()

    parent = path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PathValidationError(
                f"Cannot create parent directory for '{output_path}': {e}"
            ) from e
        logger.info(f"Created parent directory: {parent}")
    return path.resolve()


def derive_output_file(
    input_file: Path,
    output_path: Optional[Path],
    is_batch: bool,
    file_name: str,
    default_extension: str,
) -> Path:
    """
    Map one input file to its final artifact path.

    Args:
        input_file: The document being processed.
        output_path: Resolved output location, or None if none was given.
        is_batch: True when processing a directory.
        file_name: Artifact name used when the output is a directory
                   (e.g. "invoice.receipt.json").
        default_extension: Appended to a concrete output path that has
                           no extension (e.g. ".json").

    Returns:
        The path the artifact is written to.
    """
    if output_path is None:
        return input_file.parent / file_name

    if is_batch or output_path.is_dir():
        return output_path / file_name

    if output_path.suffix:
        return output_path
    return output_path.with_name(output_path.name + default_extension)


def fingerprint(path: Union[str, Path]) -> str:
    """
    Return a stable identifier for a file: the MD5 of its content.

    If the file cannot be hashed, fall back to the file stem plus the
    current wall-clock time in milliseconds, reduced to alphanumerics
    and capped at 32 characters. The fallback is not stable across
    runs, so the cache will simply miss.
    """
    path = Path(path)
    try:
        digest = hashlib.md5()
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
                digest.update(chunk)
        return digest.hexdigest()
    except OSError as e:
        logger.warning(f"Cannot hash {path.name} ({e}), using a time-based fingerprint")
        unique = f"{path.stem}_{int(time.time() * 1000)}"
        return re.sub(r"[^a-zA-Z0-9]", "", unique)[:32]
