"""SQLAlchemy ORM models for the migration journal."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class JournalBase(DeclarativeBase):
    """Base class for journal ORM models."""

    pass


class MigrationRun(JournalBase):
    """One executed migration between two album versions."""

    __tablename__ = "migration_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    started_at: Mapped[str] = mapped_column(String(32))
    finished_at: Mapped[str | None] = mapped_column(String(32))
    source_album_id: Mapped[str] = mapped_column(String(64))
    destination_album_id: Mapped[str] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(16), default="running")
    adds: Mapped[int] = mapped_column(Integer, default=0)
    removes: Mapped[int] = mapped_column(Integer, default=0)
    warnings: Mapped[int] = mapped_column(Integer, default=0)

    operations: Mapped[list[OperationRecord]] = relationship(
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="OperationRecord.position",
    )

    __table_args__ = (Index("ix_migration_runs_started_at", "started_at"),)

    def __repr__(self) -> str:
        return (
            f"<MigrationRun(id={self.id}, {self.source_album_id} -> "
            f"{self.destination_album_id}, status='{self.status}')>"
        )


class OperationRecord(JournalBase):
    """Outcome of one plan operation within a run."""

    __tablename__ = "operation_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(ForeignKey("migration_runs.id", ondelete="CASCADE"))
    position: Mapped[int] = mapped_column(Integer)
    kind: Mapped[str] = mapped_column(String(16))
    target_id: Mapped[str] = mapped_column(String(128))
    title: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16))
    error: Mapped[str | None] = mapped_column(Text)

    run: Mapped[MigrationRun] = relationship(back_populates="operations")

    __table_args__ = (Index("ix_operation_records_run", "run_id"),)

    def __repr__(self) -> str:
        return f"<OperationRecord(run={self.run_id}, {self.kind} {self.target_id}, {self.status})>"
