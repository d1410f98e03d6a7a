"""
Per-run workspace handling.

The workspace holds the payload, the subtask inputs, the outputs produced
by the compute network and task.json. It is created on entry and removed on
every exit path.
"""

import logging
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from g_flite.conf import WORKSPACE_PREFIX, WORKSPACE_ROOT
from g_flite.core.exceptions import WorkspaceIOError

logger = logging.getLogger(__name__)


@contextmanager
def task_workspace(
    root: Optional[Union[str, Path]] = None,
    keep: bool = False
) -> Iterator[Path]:
    """
    Create a uniquely named workspace directory for one run.

    Args:
        root: Parent directory (default: G_FLITE_WORKSPACE or the temp dir)
        keep: Leave the directory in place on exit (debugging)

    Yields:
        Path: The workspace directory

    Raises:
        WorkspaceIOError: If the directory cannot be created
    """
    root = Path(root or WORKSPACE_ROOT)
    prefix = f"{WORKSPACE_PREFIX}{int(time.time())}_"
    try:
        root.mkdir(parents=True, exist_ok=True)
        workspace = Path(tempfile.mkdtemp(prefix=prefix, dir=root))
    except OSError as e:
        raise WorkspaceIOError(f"Cannot create workspace under {root}: {e}") from e

    logger.debug(f"Created workspace {workspace}")
    try:
        yield workspace
    finally:
        if keep:
            logger.info(f"Keeping workspace {workspace}")
        else:
            shutil.rmtree(workspace, ignore_errors=True)
            logger.debug(f"Removed workspace {workspace}")
