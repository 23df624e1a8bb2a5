"""
Audit Logging Service
Writes audit entries for stock-affecting actions.
"""
from typing import Optional
from fastapi import Request

from models import AuditLog, AuditAction, AuditModule


SENSITIVE_FIELDS = {
    "password", "password_hash", "token", "secret", "api_key", "otp", "otp_code"
}


class AuditService:
    """Service class for creating audit logs."""

    def __init__(self, db):
        self.collection = db.audit_logs

    async def log(
        self,
        action: AuditAction,
        module: AuditModule,
        user_id: Optional[str] = None,
        record_id: Optional[str] = None,
        record_type: Optional[str] = None,
        description: Optional[str] = None,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        request: Optional[Request] = None,
        metadata: Optional[dict] = None
    ) -> str:
        """
        Create an audit log entry.

        Args:
            action: The action being performed
            module: The module where action occurred
            user_id: Acting user, when known
            record_id: ID of the affected record
            record_type: Type of record (e.g., "stock_record", "donation")
            description: Human-readable description
            old_values: Previous values (for updates)
            new_values: New values (for creates/updates)
            request: FastAPI request object for IP/user-agent
            metadata: Additional metadata

        Returns:
            ID of created audit log
        """
        ip_address = None
        user_agent = None
        request_method = None
        request_path = None

        if request:
            ip_address = request.client.host if request.client else None
            user_agent = request.headers.get("user-agent", "")[:500]  # Limit length
            request_method = request.method
            request_path = str(request.url.path)

        audit_log = AuditLog(
            user_id=user_id,
            action=action,
            module=module,
            record_id=record_id,
            record_type=record_type,
            description=description,
            old_values=self._clean_sensitive_data(old_values),
            new_values=self._clean_sensitive_data(new_values),
            ip_address=ip_address,
            user_agent=user_agent,
            request_method=request_method,
            request_path=request_path,
            metadata=metadata
        )

        doc = audit_log.model_dump()
        doc["timestamp"] = doc["timestamp"].isoformat()

        await self.collection.insert_one(doc)

        return audit_log.id

    @staticmethod
    def _clean_sensitive_data(data: Optional[dict]) -> Optional[dict]:
        """Remove sensitive fields from audit data."""
        if not data:
            return None

        cleaned = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_FIELDS:
                cleaned[key] = "[REDACTED]"
            elif isinstance(value, dict):
                cleaned[key] = AuditService._clean_sensitive_data(value)
            else:
                cleaned[key] = value

        return cleaned

    async def log_stock_change(
        self,
        action: AuditAction,
        before: Optional[dict],
        after: dict,
        user_id: Optional[str] = None,
        request: Optional[Request] = None,
        module: AuditModule = AuditModule.INVENTORY,
        metadata: Optional[dict] = None
    ) -> str:
        """Log a change to a stock record's levels."""
        return await self.log(
            action, module,
            user_id=user_id,
            record_id=after.get("id"),
            record_type="stock_record",
            description=f"{action.value} on {after.get('blood_group')} at {after.get('blood_bank')}",
            old_values=before,
            new_values=after,
            request=request,
            metadata=metadata
        )
