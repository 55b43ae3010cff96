"""
Service Layer - EnvAuditService.
"""

from envguard.services.audit_service import AuditRun, EnvAuditService, check_environment

__all__ = [
    "AuditRun",
    "EnvAuditService",
    "check_environment",
]
