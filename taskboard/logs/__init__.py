from taskboard.logs.server_log import api_logger
from taskboard.logs.debug_log import debug_logger, log_function

__all__ = ["api_logger", "debug_logger", "log_function"]
