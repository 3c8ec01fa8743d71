"""SQLAlchemy Models for DocFlow"""

from .base import Base, PortableJSONB
from .audit_log import AuditLog
from .file_action_request import FileActionRequestModel

__all__ = [
    "Base",
    "PortableJSONB",
    "AuditLog",
    "FileActionRequestModel",
]
