import os
import traceback
from datetime import datetime

from config import LOG_FILE

# Narration lines starting with this marker report a problem with one file.
WARNING_MARKER = "!"


def _append(entry: str):
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(entry + "\n")
        f.flush()
        os.fsync(f.fileno())


def log_exception(e: Exception, context: str = ""):
    lines = ["", "=" * 60, datetime.now().isoformat()]
    if context:
        lines.append(context)
    lines.append(f"{type(e).__name__}: {e}")
    lines.append(traceback.format_exc().rstrip())
    _append("\n".join(lines))


def log_info(message: str):
    if message.startswith(WARNING_MARKER):
        entry = f"{datetime.now().isoformat()} WARN {message[len(WARNING_MARKER):]}"
    else:
        entry = f"{datetime.now().isoformat()} INFO {message}"
    _append(entry)
    print(entry)
