"""One JSON line per reservation state change, written to the ``audit`` logger."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Literal, Optional

from .request_id import current_request_id

AuditAction = Literal[
    "reservation.created",
    "reservation.updated",
    "reservation.cancelled",
]
AuditInitiator = Literal["user", "staff", "system"]


def _build_audit_logger() -> logging.Logger:
    logger = logging.getLogger("audit")
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


_audit_logger = _build_audit_logger()


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, time, datetime)):
        return value.isoformat()
    return value


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    reservation_id: int,
    user_id: Optional[int],
    table_id: Optional[int],
    party_size: Optional[int],
    status_from: Optional[str],
    status_to: Optional[str],
    reservation_date: Optional[date] = None,
    reservation_time: Optional[time] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Write the entry; unset fields are left out. Raises RuntimeError if the logger fails."""
    entry: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "initiator": initiator,
        "request_id": current_request_id(),
        "reservation_id": reservation_id,
        "user_id": user_id,
        "table_id": table_id,
        "party_size": party_size,
        "status_from": status_from,
        "status_to": status_to,
        "reservation_date": reservation_date,
        "reservation_time": reservation_time,
        "message": message,
        **(extra or {}),
    }
    line = json.dumps({key: _plain(value) for key, value in entry.items() if value is not None}, ensure_ascii=True)
    try:
        _audit_logger.info(line)
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
