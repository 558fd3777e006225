"""Attendance events relayed to the notification collaborator."""
import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

attendance_signals = Namespace()

# Sent with: session_id, claimant_id, status, record_id
attendance_committed = attendance_signals.signal('attendance-committed')

def log_committed(sender, session_id=None, claimant_id=None, status=None, record_id=None, **extra):
    """Default receiver: audit log line for every committed record."""
    logger.info(
        "Attendance committed: session=%s claimant=%s status=%s record=%s",
        session_id, claimant_id, status, record_id
    )

def connect_default_receivers() -> None:
    attendance_committed.connect(log_committed)
