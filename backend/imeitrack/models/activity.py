from __future__ import annotations

from ..extensions import db
from imeitrack.time_utils import to_utc_z, utcnow


class ActivityLog(db.Model):
    """
    Audit trail of what admins and staff did.

    IMMUTABLE: Never update or delete. Append-only.

    user_name is a snapshot taken at write time so the trail still reads
    correctly after the account is renamed or deleted. user_id is not a
    foreign key for the same reason.

    Superadmin actions are not recorded (see services/activity_service.py).
    """
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_user_created", "user_id", "created_at"),
        db.Index("ix_activity_logs_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    user_name = db.Column(db.String(255), nullable=True)

    action = db.Column(db.String(16), nullable=False, index=True)  # create, update, delete, login
    entity_type = db.Column(db.String(16), nullable=True, index=True)  # imei, sold, brand, staff, admin, profile, auth
    entity_id = db.Column(db.Integer, nullable=True)

    description = db.Column(db.Text, nullable=True)
    # Named "metadata" in the table; the attribute name is reserved by SQLAlchemy.
    details = db.Column("metadata", db.JSON, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "metadata": self.details,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }
