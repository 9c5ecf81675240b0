import logging
from enum import Enum, IntEnum

logger = logging.getLogger("ntpsync.report")


class Level(IntEnum):
    """Minimum verbosity a message needs to be shown.

    QUIET messages are shown at every verbosity.
    """
    QUIET = 0
    NORMAL = 1
    VERBOSE = 2


class Severity(Enum):
    ERROR = "error"
    INFO = "info"
    SUCCESS = "success"


class Reporter:
    """Notification sink. Every message is logged; display is left to subclasses.

    Reporting is fire-and-forget: callers never depend on its outcome.
    """

    def __init__(self, verbosity: int = Level.QUIET):
        self.verbosity = verbosity

    def should_show(self, level: int) -> bool:
        return int(level) <= int(self.verbosity)

    def report(self, severity: Severity, level: int, message: str) -> None:
        if severity is Severity.ERROR:
            logger.error("%s", message)
        else:
            logger.info("%s: %s", severity.value.upper(), message)

        if self.should_show(level):
            try:
                self.show(severity, message)
            except Exception:
                logger.exception("Failed to show notification")

    def show(self, severity: Severity, message: str) -> None:
        pass

    def error(self, level: int, message: str) -> None:
        self.report(Severity.ERROR, level, message)

    def info(self, level: int, message: str) -> None:
        self.report(Severity.INFO, level, message)

    def success(self, level: int, message: str) -> None:
        self.report(Severity.SUCCESS, level, message)
