"""Write stage artifacts to disk as markdown files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from erpro.logging import get_logger
from erpro.types import Artifact

logger = get_logger(__name__)


def export_artifacts(artifacts: Iterable[Artifact], directory: Path | str) -> list[Path]:
    """Write each artifact's content to ``directory / artifact.filename``.

    Content is written as-is; no format conversion happens here.

    Args:
        artifacts: Artifacts to export.
        directory: Target directory, created if missing.

    Returns:
        Paths written, in artifact order.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    paths: list[Path] = []
    for artifact in artifacts:
        # Subject names may contain path separators
        path = directory / artifact.filename.replace("/", "_").replace("\\", "_")
        path.write_text(artifact.content, encoding="utf-8")
        paths.append(path)

    logger.info("Exported artifacts", directory=str(directory), count=len(paths))
    return paths
