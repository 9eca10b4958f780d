"""Archive a previous dump before it is overwritten."""

import logging
import tarfile
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


def archive_dump(dump_dir: str | Path) -> Path:
    """Pack the JSON files of ``dump_dir`` into a ``.tar.gz`` and remove them.

    The archive is written inside ``dump_dir`` as
    ``archive-<UTC timestamp>.tar.gz``.  Afterwards the directory no longer
    holds a manifest, so ``dump_exists()`` is false.

    Args:
        dump_dir: Directory of the dump to archive.

    Returns:
        Path of the created archive.
    """
    directory = Path(dump_dir)
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    archive_path = directory / f"archive-{timestamp}.tar.gz"

    json_files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".json")

    with tarfile.open(archive_path, "w:gz") as tar:
        for path in json_files:
            tar.add(path, arcname=path.name)

    for path in json_files:
        path.unlink()

    logger.info("Archived %d files to %s", len(json_files), archive_path)
    return archive_path
