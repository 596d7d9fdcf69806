from .id_generator import generate_id, generate_upload_name, sanitize_file_name
from .logging import get_logger, setup_logging
from .time_utils import get_timestamp_ms, ms_ago

__all__ = [
    "generate_id",
    "generate_upload_name",
    "sanitize_file_name",
    "get_logger",
    "setup_logging",
    "get_timestamp_ms",
    "ms_ago",
]
