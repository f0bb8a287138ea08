import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


@contextmanager
def staging_area(root: Path, asset_id):
    """
    Uniquely named working directory for one job attempt.

    Removed on every exit path. A failed removal is logged and never
    replaces the exception (or result) of the body.
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix=f"{asset_id}-", dir=root))
    try:
        yield workdir
    finally:
        cleanup(workdir)


def cleanup(workdir: Path) -> None:
    try:
        shutil.rmtree(workdir)
        logger.info("cleaned up %s", workdir)
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("cleanup failed for %s", workdir)
