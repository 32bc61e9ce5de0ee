"""
SQLAlchemy ORM models for persistent storage.

Timestamps are assigned on the Python side so that flushed rows never carry
expired attributes (async sessions cannot lazy-load them back).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserDB(Base):
    """A registered account."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    last_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), index=True)
    # bcrypt hash; never serialized
    password: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="user", server_default="user")
    # Bumped to invalidate every token issued before the bump
    token_version: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, email={self.email})>"


class PokemonPurchaseDB(Base):
    """
    A Pokémon bought by a user, directly or from a mystery box.

    Immutable once written.
    """

    __tablename__ = "pokemon_purchases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pokemon_id: Mapped[int] = mapped_column(Integer)
    pokemon_name: Mapped[str] = mapped_column(String(255), index=True)
    pokemon_image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    pokemon_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<PokemonPurchaseDB(id={self.id}, pokemon={self.pokemon_name})>"


team_members = Table(
    "team_members",
    Base.metadata,
    Column("team_id", Integer, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "purchase_id",
        Integer,
        ForeignKey("pokemon_purchases.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class TeamDB(Base):
    """
    A user's team built around a single Pokémon type.

    One team per (user, team_type). Writes are guarded by `version` so two
    concurrent member additions cannot both pass the capacity check.
    """

    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("user_id", "team_type", name="uq_team_owner_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    team_type: Mapped[str] = mapped_column(String(20))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    members: Mapped[list[PokemonPurchaseDB]] = relationship(
        secondary=team_members, order_by=PokemonPurchaseDB.id
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<TeamDB(id={self.id}, type={self.team_type})>"
