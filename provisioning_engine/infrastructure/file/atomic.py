# provisioning_engine/infrastructure/file/atomic.py
"""All-or-nothing file replacement."""

import os
import tempfile
from pathlib import Path
from typing import Union


def atomic_write_text(path: Union[str, Path], content: str) -> Path:
    """
    Write content to a temporary sibling file, then rename it over path.

    Readers observe either the previous file or the complete new one.

    Args:
        path: Destination file
        content: Text to write (UTF-8)

    Returns:
        Resolved destination path
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target.parent),
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    return target
