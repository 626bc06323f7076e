"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of uploads, notes and chat turns
2. Debugging capability when the model misbehaves
3. A record of every field that was silently defaulted

The audit logger:
- Writes structured JSON events through structlog
- Never raises (a logging failure must not break a request)
- Supports correlation IDs to trace the events of one request
"""

import logging
import sys
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog on top of the standard library logger.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Module-level structured logger."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Each method records one domain event. Events carry the correlation id
    of the request that produced them.
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or structlog.get_logger("drawer.audit")

    def log(
        self,
        event_type: str,
        correlation_id: Optional[UUID] = None,
        severity: str = "info",
        **details: Any,
    ) -> None:
        """Emit one audit event at the given severity."""
        payload = {
            "event_type": event_type,
            "correlation_id": str(correlation_id) if correlation_id else None,
            **details,
        }
        try:
            if severity == "error":
                self._logger.error("audit_event", **payload)
            elif severity == "warning":
                self._logger.warning("audit_event", **payload)
            elif severity == "debug":
                self._logger.debug("audit_event", **payload)
            else:
                self._logger.info("audit_event", **payload)
        except Exception as e:
            # Never let logging take a request down
            print(f"WARNING: Failed to write audit event {event_type}: {e}", file=sys.stderr)

    def log_upload_received(
        self,
        filename: str,
        mime_type: str,
        file_size: int,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "upload_received",
            correlation_id,
            filename=filename,
            mime_type=mime_type,
            file_size=file_size,
        )

    def log_upload_rejected(
        self,
        filename: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "upload_rejected",
            correlation_id,
            severity="warning",
            filename=filename,
            reason=reason,
        )

    def log_fields_defaulted(
        self,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Fields the normalizer replaced with fallbacks. Not an error."""
        self.log(
            "extraction_defaulted",
            correlation_id,
            fields=fields,
        )

    def log_extraction_failed(
        self,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "extraction_failed",
            correlation_id,
            severity="error",
            error_type=error_type,
            error_message=error_message,
        )

    def log_upstream_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "upstream_error",
            correlation_id,
            severity="error",
            operation=operation,
            error_message=error_message,
        )

    def log_document_saved(
        self,
        document_id: int,
        merchant: str,
        amount: str,
        transaction_type: str,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "document_saved",
            correlation_id,
            document_id=document_id,
            merchant=merchant,
            amount=amount,
            transaction_type=transaction_type,
        )

    def log_document_deleted(
        self,
        document_id: int,
        file_url: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(
            "document_deleted",
            correlation_id,
            document_id=document_id,
            file_url=file_url,
        )

    def log_note_created(
        self,
        note_id: int,
        source: str,
        has_reminder: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(
            "note_created",
            correlation_id,
            note_id=note_id,
            source=source,
            has_reminder=has_reminder,
        )

    def log_chat_answered(
        self,
        reply_kind: str,
        document_count: int,
        note_count: int,
        correlation_id: UUID,
    ) -> None:
        self.log(
            "chat_answered",
            correlation_id,
            reply_kind=reply_kind,
            document_count=document_count,
            note_count=note_count,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
