"""
Logging setup and the recurring log lines of the grade pipeline.
"""

import logging
import sys
from typing import Any, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"
_HANDLER_NAME = "spts-stream"


def configure_logging(level: Union[str, int] = "INFO", stream: Optional[Any] = None) -> logging.Logger:
    """Configure the ``spts`` logger hierarchy. Safe to call more than once."""
    root = logging.getLogger("spts")
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return root
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return root


def log_standing_transition(logger: Any, student_number: str, old: str, new: str, gpa: Optional[float]) -> None:
    logger.info("STANDING_CHANGE student=%s from=%s to=%s gpa=%s", student_number, old, new, _fmt_gpa(gpa))


def log_alert_emitted(logger: Any, student_number: str, level: str, alert_type: str) -> None:
    logger.info("ALERT_CREATED student=%s level=%s type=%s", student_number, level, alert_type)


def log_alert_skipped(logger: Any, student_number: str, alert_type: str) -> None:
    logger.debug("ALERT_SKIPPED student=%s type=%s reason=unresolved_exists", student_number, alert_type)


def log_enrollment_completed(logger: Any, enrollment_id: str, score: float, gpa_value: float, letter: str) -> None:
    logger.info(
        "ENROLLMENT_COMPLETED enrollment=%s score=%.2f gpa_value=%.1f letter=%s",
        enrollment_id,
        score,
        gpa_value,
        letter,
    )


def _fmt_gpa(gpa: Optional[float]) -> str:
    return "-" if gpa is None else f"{gpa:.2f}"
