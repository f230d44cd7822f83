# ourplanet/progress/reporter.py

from ourplanet.logging.logger import setup_logger

log = setup_logger(__name__)


def percent_of(completed: int, total: int) -> int:
    # nothing to download counts as done
    if total <= 0:
        return 100
    return min(100, (100 * completed) // total)


class ProgressReporter:
    """
    Tracks ``(completed, total)`` pairs and a one-shot completion signal.

    Subclasses override ``_progress`` and ``_complete``; ``on_complete`` makes
    sure ``_complete`` runs once even if the signal arrives twice.
    """

    def __init__(self) -> None:
        self.completed = 0
        self.total = 0
        self.percent = 0
        self.done = False

    @property
    def label(self) -> str:
        return f"Download: {self.percent}%"

    def on_progress(self, completed: int, total: int) -> None:
        self.completed = completed
        self.total = total
        self.percent = percent_of(completed, total)
        self._progress()

    def on_complete(self) -> None:
        if self.done:
            log.debug("Ignoring repeated completion signal")
            return
        self.done = True
        self._complete()

    def _progress(self) -> None:
        pass

    def _complete(self) -> None:
        pass


class LogProgressReporter(ProgressReporter):
    def _progress(self) -> None:
        log.info("%s (%d/%d)", self.label, self.completed, self.total)

    def _complete(self) -> None:
        log.info("Download complete")
