"""Upload model representing one import operation (a batch)."""
from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finboard.models.base import Base, CreatedAtMixin


class Upload(CreatedAtMixin, Base):
    """One ingestion call and the number of transactions it durably stored."""

    __tablename__ = "uploads"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Rely on DB-level ON DELETE CASCADE; prevent SQLAlchemy from NULLing FKs on delete.
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="upload",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Upload(id={self.id}, filename={self.filename}, count={self.transaction_count})>"
