"""
Structured logging for Backend HiveWatch.

JSON logs with timestamp, event_type, subsystem and endpoint context.
Use get_logger() in all engine modules; bind_subsystem() for per-subsystem loggers.
"""

from backend_hivewatch.hivewatch_logging.logger import bind_subsystem, get_logger

__all__ = ["bind_subsystem", "get_logger"]
