"""Audit logging package."""

from drawer.audit.logger import (
    AuditLogger,
    configure_logging,
    create_correlation_id,
    get_logger,
)

__all__ = ["AuditLogger", "configure_logging", "create_correlation_id", "get_logger"]
