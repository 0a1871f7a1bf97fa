"""Structured audit logging for committed writes."""

import logging
from typing import Any
from uuid import UUID

logger = logging.getLogger("care_assistant.audit")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler at ``level``."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class StructuredAuditLogger:
    """Structured logger for conversation, message, escalation and document writes."""

    def log_write(
        self,
        operation: str,
        entity_id: UUID | None,
        outcome: str,
        actor_id: UUID | None = None,
        **details: Any,
    ) -> None:
        """Log one write with structured data."""
        log_data: dict[str, Any] = {
            "operation": operation,
            "entity_id": str(entity_id) if entity_id else None,
            "outcome": outcome,
        }

        if actor_id:
            log_data["actor_id"] = str(actor_id)
        log_data.update(details)

        log_msg = f"Write: {operation} - {outcome}"

        if outcome in ("created", "updated", "deleted", "skipped"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
