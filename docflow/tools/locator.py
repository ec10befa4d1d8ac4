# docflow/tools/locator.py
# ============================================================
# Fallback Output Locator
# ============================================================
# Some extractor invocation modes ignore the requested output
# path and write to an internal default instead: a fixed file
# name (text.txt) in the working directory, or inside a
# hash-named directory beneath it.
#
# When a stage's expected output is missing after a successful
# run, the locator searches, first match wins:
#   1. the per-file staging directory (any file with the
#      expected suffix)
#   2. the current working directory: <cwd>/<default name>,
#      then <cwd>/*/<default name>, newest first
# and moves the hit to the expected location.
# ============================================================

import shutil
from pathlib import Path
from typing import Optional

from config.settings import settings
from docflow.errors import StageFailure
from docflow.utils.logger import get_logger

logger = get_logger(__name__)


class FallbackLocator:
    """
    Recovers tool outputs that were not written where requested.

    Example:
        >>> locator = FallbackLocator()
        >>> path = locator.recover(Path("out/scan.txt"), suffix=".txt")
    """

    def __init__(self, default_name: Optional[str] = None, search_root: Optional[Path] = None):
        """
        Args:
            default_name: File name the tool writes by default.
            search_root: Directory searched in tier 2. None means the
                         current working directory at lookup time.
        """
        self.default_name = default_name or settings.extractor_default_output
        self.search_root = Path(search_root) if search_root else None

    def find(self, suffix: str, staging_dir: Optional[Path] = None) -> Optional[Path]:
        """Return the first fallback candidate, or None."""
        if staging_dir is not None and staging_dir.is_dir():
            staged = sorted(
                p for p in staging_dir.iterdir()
                if p.is_file() and p.name.endswith(suffix)
            )
            if staged:
                logger.info(f"Found output in staging directory: {staged[0]}")
                return staged[0]

        root = self.search_root or Path.cwd()
        direct = root / self.default_name
        if direct.is_file():
            logger.info(f"Found output at tool default location: {direct}")
            return direct

        # Hash-named directories under the working directory
        nested = [p for p in root.glob(f"*/{self.default_name}") if p.is_file()]
        if nested:
            newest = max(nested, key=lambda p: p.stat().st_mtime)
            logger.info(f"Found output at tool default location: {newest}")
            return newest

        return None

    def recover(self, expected: Path, suffix: str, staging_dir: Optional[Path] = None) -> Path:
        """
        Make sure `expected` exists, relocating a fallback hit if needed.

        Returns:
            The expected path, now present.

        Raises:
            StageFailure: If no candidate exists or it cannot be moved.
        """
        if expected.exists():
            return expected

        logger.warning(f"Output was not created at expected location: {expected}")
        candidate = self.find(suffix, staging_dir)
        if candidate is None:
            raise StageFailure("locate", f"Could not locate extracted artifact for {expected.name}")

        try:
            expected.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(candidate, expected)
            candidate.unlink()
        except OSError as e:
            raise StageFailure("locate", f"Could not move {candidate} to {expected}: {e}") from e

        logger.info(f"Moved extracted artifact to [bold]{expected}[/bold]")
        return expected
