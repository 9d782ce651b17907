import logging
from contextlib import contextmanager


class CountingHandler(logging.Handler):
    """Counts warnings and errors emitted while attached (used for end-of-run summaries)."""

    def __init__(self):
        super().__init__()
        self.warnings = 0
        self.errors = 0
        self.last_error = None

    def emit(self, record):
        if record.levelno >= logging.ERROR:
            self.errors += 1
            self.last_error = record.getMessage()
        elif record.levelno >= logging.WARNING:
            self.warnings += 1

    @contextmanager
    def attached(self, logger: logging.Logger = None):
        logger = logger or logging.getLogger()
        logger.addHandler(self)
        try:
            yield self
        finally:
            logger.removeHandler(self)
