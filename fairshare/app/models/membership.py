"""
models/membership.py — GroupMember junction table definition.

No business logic. No imports from services or routes.

Only ACTIVE memberships count for balances and for access to a group's
settlements. INVITED rows belong to people who have not accepted yet;
LEFT rows keep history for members who walked away.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fairshare.app.extensions import db
from fairshare.app.models.user import new_id


class MemberStatus(str, enum.Enum):
    ACTIVE  = "ACTIVE"
    INVITED = "INVITED"
    LEFT    = "LEFT"


class GroupMember(db.Model):
    __tablename__ = "group_members"

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    status: Mapped[MemberStatus] = mapped_column(
        Enum(
            MemberStatus,
            name="member_status_enum",
            values_callable=lambda cls: [m.value for m in cls],
        ),
        nullable=False,
        default=MemberStatus.ACTIVE,
        server_default=MemberStatus.ACTIVE.value,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="memberships",
    )

    group: Mapped["Group"] = relationship(  # noqa: F821
        "Group",
        back_populates="members",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<GroupMember group_id={self.group_id} "
            f"user_id={self.user_id} "
            f"status={self.status.value}>"
        )
