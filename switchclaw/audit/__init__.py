"""Audit logging."""

from switchclaw.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
