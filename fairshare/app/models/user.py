"""
models/user.py — User table definition.

No business logic. No imports from services or routes.

Users are created by the authentication provider (credentials, OAuth,
passkeys) or as placeholders for invited email addresses. The settlement
code only ever reads `id`, `name` and `email`.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fairshare.app.extensions import db


def new_id() -> str:
    """Opaque primary key shared by every FairShare table."""
    return uuid.uuid4().hex


class User(db.Model):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # Display name. Nullable: invited placeholders only have an email.
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    memberships: Mapped[list["GroupMember"]] = relationship(  # noqa: F821
        "GroupMember",
        back_populates="user",
    )

    @property
    def display_name(self) -> str:
        """Name shown next to balances: name, then email, then 'Unknown'."""
        return self.name or self.email or "Unknown"

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} name={self.name!r}>"
