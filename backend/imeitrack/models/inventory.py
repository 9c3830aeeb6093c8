from __future__ import annotations

from ..extensions import db
from imeitrack.time_utils import to_utc_z, to_iso_date, utcnow


def _money(value) -> float | None:
    return float(value) if value is not None else None


class Brand(db.Model):
    """
    Phone brand picklist.

    OWNERSHIP: created_by=None means a superadmin brand, visible to every
    company. Otherwise the brand is visible to the creator's company only.
    Names are globally unique so the picklist never shows two "Samsung".
    """
    __tablename__ = "brands"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_brands_name"),
        db.Index("ix_brands_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Brand id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class ImeiRecord(db.Model):
    """
    One purchased handset, identified by its IMEI.

    OWNERSHIP: created_by is the purchasing user and decides company scope.
    brand is a free-text snapshot; deleting a Brand never touches these rows.

    UNIQUENESS: imei is unique across all companies. Duplicates are detected
    from the IntegrityError after the INSERT, never by a pre-read, so two
    concurrent scans of the same handset cannot both succeed.
    """
    __tablename__ = "imei_records"
    __table_args__ = (
        db.UniqueConstraint("imei", name="uq_imei_records_imei"),
        db.Index("ix_imei_records_created_by_created_at", "created_by", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    imei = db.Column(db.String(32), nullable=False)

    # Purchase side
    purchase = db.Column(db.String(255), nullable=True)  # seller / purchase name
    amount = db.Column(db.Numeric(12, 2), nullable=True)
    date = db.Column(db.Date, nullable=True)

    brand = db.Column(db.String(128), nullable=True, index=True)
    model = db.Column(db.String(128), nullable=True)
    color = db.Column(db.String(64), nullable=True)
    ram = db.Column(db.String(32), nullable=True)
    storage = db.Column(db.String(32), nullable=True)

    created_by = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    sold_records = db.relationship(
        "SoldRecord",
        back_populates="imei_record",
        cascade="all, delete-orphan",
        order_by="SoldRecord.created_at.desc()",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<ImeiRecord id={self.id} imei={self.imei!r} created_by={self.created_by}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "imei": self.imei,
            "purchase": self.purchase,
            "amount": _money(self.amount),
            "date": to_iso_date(self.date),
            "brand": self.brand,
            "model": self.model,
            "color": self.color,
            "ram": self.ram,
            "storage": self.storage,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class SoldRecord(db.Model):
    """
    Resale of an ImeiRecord.

    One sold record per IMEI (uq_sold_records_imei_id). Its presence flips the
    IMEI's derived status from "available" to "sold".
    """
    __tablename__ = "sold_records"
    __table_args__ = (
        db.UniqueConstraint("imei_id", name="uq_sold_records_imei_id"),
        db.Index("ix_sold_records_created_by_created_at", "created_by", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    imei_id = db.Column(
        db.Integer,
        db.ForeignKey("imei_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sold_name = db.Column(db.String(255), nullable=True)  # buyer
    sold_amount = db.Column(db.Numeric(12, 2), nullable=True)
    sold_date = db.Column(db.Date, nullable=True, index=True)
    store = db.Column(db.String(255), nullable=True)

    created_by = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    imei_record = db.relationship("ImeiRecord", back_populates="sold_records")

    def __repr__(self) -> str:
        return f"<SoldRecord id={self.id} imei_id={self.imei_id} created_by={self.created_by}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "imei_id": self.imei_id,
            "sold_name": self.sold_name,
            "sold_amount": _money(self.sold_amount),
            "sold_date": to_iso_date(self.sold_date),
            "store": self.store,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
