import os
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

@contextmanager
def safe_write(filepath, mode='w', encoding='utf-8'):
    """
    Write to ``filepath`` through a sibling temp file.
    The target only changes once the whole write succeeded; on failure the
    temp file is removed and the exception propagates.
    """
    dir_name = os.path.dirname(os.path.abspath(filepath))
    os.makedirs(dir_name, exist_ok=True)
    temp_path = os.path.join(dir_name, f".{os.path.basename(filepath)}.tmp")

    if 'b' in mode:
        f = open(temp_path, mode)
    else:
        f = open(temp_path, mode, encoding=encoding)

    try:
        yield f
        f.flush()
        os.fsync(f.fileno())
        f.close()
        # Same directory, so the rename is atomic
        os.replace(temp_path, filepath)
    except Exception as e:
        logger.error(f"Failed to safe_write to {filepath}: {e}")
        f.close()
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as os_err:
                logger.warning(f"Failed to remove temp file {temp_path}: {os_err}")
        raise
