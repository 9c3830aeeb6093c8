from __future__ import annotations

from ..extensions import db
from ..permissions import Role, normalize_permissions, expand_permissions
from imeitrack.time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    Accounts for all three tiers: superadmin, admin (a company), staff.

    COMPANY: there is no company table. A company is an admin plus every
    staff row whose created_by is that admin's id, derived at query time
    (see services/company_service.py).

    created_by is deliberately not a foreign key: deleting an admin leaves
    their staff and records in place and must not null them into
    "ownerless" (shared) rows.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_created_by_role", "created_by", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=Role.ADMIN, index=True)

    # Menu permission flags; read through permission_flags, never directly.
    permissions = db.Column(db.JSON, nullable=True)

    created_by = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    session_tokens = db.relationship(
        "SessionToken",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def permission_flags(self) -> dict[str, bool]:
        return normalize_permissions(self.permissions)

    def set_permissions(self, raw) -> None:
        self.permissions = expand_permissions(raw)

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "permissions": self.permission_flags,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Bearer session for an authenticated principal.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - 24-hour absolute timeout
    - 2-hour idle timeout
    - Revocable on logout, password change or account deletion
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", back_populates="session_tokens")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
