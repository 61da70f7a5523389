from __future__ import annotations

from ..extensions import db
from sms.time_utils import to_utc_z


ROLE_ADMIN = "Admin"
ROLE_INVENTORY_MANAGER = "InventoryManager"
ROLE_REP = "Rep"
ROLES = (ROLE_ADMIN, ROLE_INVENTORY_MANAGER, ROLE_REP)


class User(db.Model):
    """
    Staff member. Reps are the recipients of issue orders.

    No credentials are stored here; login is handled outside this service.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.CheckConstraint(
            "role IN ('Admin', 'InventoryManager', 'Rep')",
            name="ck_users_role",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_REP, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }
