import logging

from rich.logging import RichHandler

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Route the standard logging module through rich, once per process."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=True, show_path=False)],
    )
    _configured = True


class ResolutionLogger:
    """Logger that tags every message with the workflow being resolved."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        self._std_logger = logging.getLogger("orchestrator.resolver")

    def info(self, msg: str):
        self._std_logger.info(self._format(msg))

    def warning(self, msg: str):
        self._std_logger.warning(self._format(msg))

    def error(self, msg: str):
        self._std_logger.error(self._format(msg))

    def debug(self, msg: str):
        self._std_logger.debug(self._format(msg))

    def _format(self, msg: str) -> str:
        return f"[{self.workflow_id}] {msg}"
