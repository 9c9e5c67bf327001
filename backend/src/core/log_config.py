"""Process-wide logging setup."""
import logging

from core.config import Settings

LOG_FORMAT = "%(asctime)s - (%(process_label)s) %(name)s - %(levelname)s - %(message)s"


class ProcessLabelFilter(logging.Filter):
    """
    Stamp every record with the label of the process that emitted it.

    Several instances may write to the same log sink; the label tells them
    apart ("Main" for the primary instance, "PID <pid>" for the rest).
    """

    def __init__(self, process_label: str) -> None:
        super().__init__()
        self.process_label = process_label

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach the label; never drops a record."""
        record.process_label = self.process_label
        return True


def configure_logging(settings: Settings) -> None:
    """
    Configure the root logger once at startup.

    The process label comes from settings and is bound to the handler, so
    loggers created with ``logging.getLogger(__name__)`` pick it up without
    any module-level state.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(ProcessLabelFilter(settings.process_label))

    root = logging.getLogger()
    # Re-running (tests, reloads) replaces our handler instead of stacking another
    for existing in list(root.handlers):
        if any(isinstance(f, ProcessLabelFilter) for f in existing.filters):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.log_level)
