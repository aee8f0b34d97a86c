from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, BigInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for dashboard models."""

    pass


class RecordRow(Base):
    """Entity document stored by the local record store."""

    __tablename__ = "records"  # pyright: ignore[reportUnannotatedClassAttribute]

    collection: Mapped[str] = mapped_column(String, primary_key=True)
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Lifted out of the document so lookups don't need to parse JSON
    principal_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    image_uri: Mapped[str | None] = mapped_column(String, nullable=True)

    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_date: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class PrincipalRow(Base):
    """Login identity stored by the local identity store."""

    __tablename__ = "principals"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    created_date: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
