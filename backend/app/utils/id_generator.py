"""ID and file-name generation utilities."""

import random
import re
import string
import time

_UNSAFE_FILE_CHARS = re.compile(r"[^a-zA-Z0-9_.-]")


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix.

    Format: {prefix}_{timestamp_base36}{random_6chars}
    Example: task_m1a2b3c4d5e6
    """
    timestamp = int(time.time() * 1000)
    timestamp_b36 = _to_base36(timestamp)
    random_part = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))

    if prefix:
        return f"{prefix}_{timestamp_b36}{random_part}"
    return f"{timestamp_b36}{random_part}"


def sanitize_file_name(name: str) -> str:
    """Replace every character outside [a-zA-Z0-9_.-] with an underscore.

    Leading dots are replaced too so the result is never a hidden file or a
    relative path component.
    """
    safe = _UNSAFE_FILE_CHARS.sub("_", name or "")
    safe = re.sub(r"^\.+", lambda m: "_" * len(m.group(0)), safe)
    return safe or "file"


def generate_upload_name(original_name: str) -> str:
    """Generate a collision-resistant stored name for an uploaded file.

    Format: {timestamp_ms}-{random_4chars}-{sanitized original name}
    Example: 1718000000000-k3x9-report_v2.pdf
    """
    timestamp = int(time.time() * 1000)
    random_part = "".join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{timestamp}-{random_part}-{sanitize_file_name(original_name)}"


def _to_base36(num: int) -> str:
    """Convert integer to base36 string."""
    chars = string.digits + string.ascii_lowercase
    if num == 0:
        return "0"

    result = []
    while num:
        result.append(chars[num % 36])
        num //= 36

    return "".join(reversed(result))
