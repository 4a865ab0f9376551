"""Write-then-rename helpers so readers never see a half-written file."""

import os
import shutil
import tempfile
from pathlib import Path


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text_atomic(path: Path, content: str) -> None:
    """Replace `path` with `content` in a single rename.

    Creates parent directories as needed and keeps the permission bits of an
    existing file (hook scripts must stay executable). New files get the
    usual umask-derived mode rather than mkstemp's 0600.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if path.exists():
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, _default_file_mode())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
