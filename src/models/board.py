from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from src.db.base import Base


class BoardMemberRole(str, enum.Enum):
    OWNER = "owner"        # Board creator
    ADMIN = "admin"
    MEMBER = "member"


class Board(Base):
    """Top-level kanban workspace"""

    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default="#3B82F6")
    priority = Column(String(20), nullable=False, default="medium")
    is_starred = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("Profile", foreign_keys=[created_by])

    columns = relationship(
        "BoardColumn",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardColumn.position",
    )

    members = relationship("BoardMember", back_populates="board", cascade="all, delete-orphan")


class BoardMember(Base):
    """Membership of a user on a board, with the role gating mutations"""

    __tablename__ = "board_members"
    __table_args__ = (
        UniqueConstraint("board_id", "user_id", name="uq_board_members_board_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        Enum(BoardMemberRole, name="board_member_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=BoardMemberRole.MEMBER,
    )
    joined_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    board = relationship("Board", back_populates="members")
    profile = relationship("Profile")
