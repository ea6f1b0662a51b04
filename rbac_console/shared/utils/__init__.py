from rbac_console.shared.utils.datetime import ensure_utc, utc_now
from rbac_console.shared.utils.generators import generate_cuid
from rbac_console.shared.utils.sanitization import LogSanitizer, sanitize_log_context

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "LogSanitizer",
    "sanitize_log_context",
]
