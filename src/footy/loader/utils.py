import json
import os
import tempfile


def ensure_dir_exists(filepath: str) -> None:
    """Ensure the directory for the provided filepath exists."""
    directory = os.path.dirname(filepath)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def write_json_atomic(filepath: str, body: dict, *, pretty: bool = True) -> str:
    """Dump JSON to a temporary sibling, then swap it into place."""
    ensure_dir_exists(filepath)
    directory = os.path.dirname(filepath) or "."
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            if pretty:
                json.dump(body, fh, indent=2, ensure_ascii=False)
            else:
                json.dump(body, fh, separators=(",", ":"), ensure_ascii=False)
        os.replace(tmp_path, filepath)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return filepath
