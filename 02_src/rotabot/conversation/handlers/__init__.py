"""Dialog step handlers and one-shot commands."""

from .base import (
    GENERIC_ERROR,
    DialogStateError,
    IDialogHandler,
    StepResult,
)
from .commands import Commands
from .log_event import LogEventDialog
from .register_item import RegisterItemDialog
from .report import ReportDialog

__all__ = [
    "GENERIC_ERROR",
    "Commands",
    "DialogStateError",
    "IDialogHandler",
    "LogEventDialog",
    "RegisterItemDialog",
    "ReportDialog",
    "StepResult",
]
