import sys

from logbook import Logger, StreamHandler, DEBUG, INFO, WARNING

LOG_NAME = "SNPRecal"

log_handler = StreamHandler(sys.stderr, level=INFO)
log_handler.push_application()
logger = Logger(LOG_NAME)


def set_verbosity(verbosity):
    """0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG"""
    if verbosity <= 0:
        log_handler.level = WARNING
    elif verbosity == 1:
        log_handler.level = INFO
    else:
        log_handler.level = DEBUG

    return log_handler.level
