"""
Logging Utilities
=================
Leveled console logging for the listing pipeline.

Messages go to stdout with a short emoji prefix so that runs stay readable
for sellers watching the terminal.
"""

# Log levels
LOG_LEVEL_SILENT = 0
LOG_LEVEL_ERROR = 1
LOG_LEVEL_INFO = 2
LOG_LEVEL_DEBUG = 3

_LEVEL_NAMES = {
    "silent": LOG_LEVEL_SILENT,
    "error": LOG_LEVEL_ERROR,
    "info": LOG_LEVEL_INFO,
    "debug": LOG_LEVEL_DEBUG,
}

# Global log level (can be set from config)
CURRENT_LOG_LEVEL = LOG_LEVEL_INFO


def set_log_level(level):
    """Set global log level from an int or a name ("info", "debug", ...)."""
    global CURRENT_LOG_LEVEL
    if isinstance(level, str):
        if level.lower() not in _LEVEL_NAMES:
            raise ValueError(f"Unknown log level: {level}")
        level = _LEVEL_NAMES[level.lower()]
    CURRENT_LOG_LEVEL = level


def get_log_level() -> int:
    return CURRENT_LOG_LEVEL


def log_error(msg: str):
    """Always printed (critical errors)."""
    print(f"❌ {msg}")


def log_warning(msg: str):
    """Printed unless logging is silenced."""
    if CURRENT_LOG_LEVEL >= LOG_LEVEL_ERROR:
        print(f"   ⚠️ {msg}")


def log_info(msg: str):
    """Printed at INFO level and above."""
    if CURRENT_LOG_LEVEL >= LOG_LEVEL_INFO:
        print(msg)


def log_debug(msg: str):
    """Only printed at DEBUG level."""
    if CURRENT_LOG_LEVEL >= LOG_LEVEL_DEBUG:
        print(f"   🔍 {msg}")


def log_banner(title: str, width: int = 60):
    """Section banner, INFO level."""
    if CURRENT_LOG_LEVEL >= LOG_LEVEL_INFO:
        print("\n" + "=" * width)
        print(title)
        print("=" * width)
