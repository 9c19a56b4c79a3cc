# Overview: Per-shop human-readable numbers (invoice numbers, customer ids).

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import DocumentSequence


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


INVOICE = "INVOICE"
CUSTOMER = "CUSTOMER"


def next_number(*, shop_id: int, document_type: str) -> int:
    """
    Atomically allocate the next number for a shop/type.

    Runs inside the caller's transaction and never commits or rolls back.
    If two requests create the first row for a type at the same moment, the
    loser raises IntegrityError; callers that allocate numbers run under
    run_with_retry with IntegrityError retryable.
    """
    if not shop_id:
        raise DocumentSequenceError("shop_id is required")
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.shop_id == shop_id,
            DocumentSequence.document_type == document_type,
        )
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(shop_id=shop_id, document_type=document_type)
            .scalar()
        )
        return current - 1

    db.session.add(DocumentSequence(shop_id=shop_id, document_type=document_type, next_number=2))
    db.session.flush()
    return 1


def next_invoice_number(shop_id: int, prefix: str) -> str:
    number = next_number(shop_id=shop_id, document_type=INVOICE)
    return f"{prefix}-{number:06d}"


def next_customer_code(shop_id: int) -> str:
    number = next_number(shop_id=shop_id, document_type=CUSTOMER)
    return f"CUST-{number:04d}"
