"""cdrlink utilities package.

Stateless helpers with no external calls or side effects.
"""

from cdrlink.utils.cancellation import (
    AnalysisCancelled,
    CancellationToken,
    checked,
    checkpoint,
)
from cdrlink.utils.date_utils import (
    parse_timestamp,
    time_slot_for_hour,
    to_epoch_seconds,
)

__all__ = [
    "AnalysisCancelled",
    "CancellationToken",
    "checked",
    "checkpoint",
    "parse_timestamp",
    "time_slot_for_hour",
    "to_epoch_seconds",
]
