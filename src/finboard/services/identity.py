"""Record identity for deduplication across imports.

Rows with a bank-issued identifier get a deterministic id built from the
length-prefixed upload id and that identifier, so writing the same row for
the same upload twice collides on the primary key and is ignored, while
different (upload id, identifier) pairs never share an id. Rows without
one get a random id: they can never be recognized as already imported.
"""

from uuid import uuid4

from finboard.schemas.internal import IdentifiedTransaction, ParsedTransaction

ID_SEPARATOR = ":"


def resolve_source_id(raw: str | None) -> str | None:
    """Trim a raw identifier cell; blank means absent."""
    value = (raw or "").strip()
    return value or None


def make_record_id(upload_id: str, source_id: str | None) -> str:
    """Build `<len(upload_id)>:<upload_id>:<source_id>`, or a random hex token without a source id."""
    if source_id:
        return f"{len(upload_id)}{ID_SEPARATOR}{upload_id}{ID_SEPARATOR}{source_id}"
    return uuid4().hex


def identify(row: ParsedTransaction, upload_id: str, category: str) -> IdentifiedTransaction:
    source_id = resolve_source_id(row.source_id)
    return IdentifiedTransaction(
        id=make_record_id(upload_id, source_id),
        upload_id=upload_id,
        source_id=source_id,
        date=row.date,
        type=row.type,
        description=row.description,
        amount=row.amount,
        category=category,
    )
