# serialize.py
# zipbundle – Serialize subsystem: render extracted files as a JSON payload

import json
from typing import List, Sequence, Tuple


# ============================================================
# Exceptions
# ============================================================

class SerializeError(Exception):
    """Error reading a serialized file payload."""
    pass


# ============================================================
# Rendering
# ============================================================

def serialize_files(files: Sequence) -> str:
    """
    Render files as a pretty-printed JSON array of {path, content} objects.

    Order is preserved and nothing is filtered, deduplicated or capped.
    Output is byte-identical for identical input.

    Args:
        files: Sequence of objects with ``path`` and ``content`` attributes

    Returns:
        JSON string
    """
    return json.dumps(
        [{"path": f.path, "content": f.content} for f in files],
        indent=2,
        ensure_ascii=False,
    )


def deserialize_files(text: str) -> List[Tuple[str, str]]:
    """Recover the (path, content) pairs from serialize_files output."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SerializeError(f"Invalid file payload: {e}") from e

    if not isinstance(data, list):
        raise SerializeError("File payload must be a JSON array")

    pairs = []
    for i, item in enumerate(data):
        if not isinstance(item, dict) or not isinstance(item.get("path"), str) \
                or not isinstance(item.get("content"), str):
            raise SerializeError(f"Entry {i} is not a {{path, content}} object")
        pairs.append((item["path"], item["content"]))
    return pairs


def payload_stats(files: Sequence) -> dict:
    """Count files and characters in a file sequence."""
    return {
        "files": len(files),
        "chars": sum(len(f.content) for f in files),
        "lines": sum(f.content.count("\n") + 1 for f in files if f.content),
    }
