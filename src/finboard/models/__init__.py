"""Database models."""
from finboard.models.base import Base
from finboard.models.transaction import Transaction
from finboard.models.upload import Upload

__all__ = ["Base", "Upload", "Transaction"]
