"""Transaction model representing one imported statement line."""
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finboard.models.base import Base, CreatedAtMixin


class Transaction(CreatedAtMixin, Base):
    """An immutable, categorized statement line owned by one upload."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    upload_id: Mapped[str] = mapped_column(
        ForeignKey("uploads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(), nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        # NULLs never compare equal, so rows without a source id are never deduplicated.
        Index("uq_transactions_source_id", "source_id", unique=True),
    )

    upload: Mapped["Upload"] = relationship("Upload", back_populates="transactions")

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, source_id={self.source_id}, amount={self.amount})>"
