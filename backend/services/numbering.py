"""
Human-facing sequential numbers (``BES-001``, ``ART-001``).

Allocation goes through a locked ``number_sequences`` row, so two concurrent
callers serialize on that row instead of both reading the same maximum. The
row per configured prefix is created with the table; any other prefix gets
its row on first use. The highest number already in use always wins over
the stored value.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.core.config import get_settings
from backend.app.db.models.models_v1 import Article, NumberSequence, Order

logger = logging.getLogger(__name__)


def format_number(prefix: str, value: int, width: int | None = None) -> str:
    width = width if width is not None else get_settings().NUMBER_WIDTH
    return f"{prefix}-{value:0{width}d}"


def parse_number(prefix: str, number: str | None) -> int | None:
    """Numeric suffix of ``PREFIX-NNN``; None for anything else."""
    if not number or not number.startswith(f"{prefix}-"):
        return None
    suffix = number[len(prefix) + 1:]
    if not suffix.isdigit():
        return None
    return int(suffix)


def highest_in_use(numbers, prefix: str) -> int:
    parsed = (parse_number(prefix, n) for n in numbers)
    return max((n for n in parsed if n is not None), default=0)


def _existing_numbers(db: Session, column, prefix: str) -> list[str]:
    return list(db.execute(select(column).where(column.like(f"{prefix}-%"))).scalars())


def _allocate(db: Session, column, prefix: str) -> str:
    seq = db.execute(
        select(NumberSequence).where(NumberSequence.name == prefix).with_for_update()
    ).scalar_one_or_none()

    # rows inserted outside the allocator (imports, fixtures) still count
    in_use = highest_in_use(_existing_numbers(db, column, prefix), prefix)

    if seq is None:
        seq = NumberSequence(name=prefix, value=in_use)
        db.add(seq)

    seq.value = max(seq.value, in_use) + 1
    db.flush()
    return format_number(prefix, seq.value)


def _peek(db: Session, column, prefix: str) -> str:
    seq = db.get(NumberSequence, prefix)
    in_use = highest_in_use(_existing_numbers(db, column, prefix), prefix)
    current = max(seq.value if seq else 0, in_use)
    return format_number(prefix, current + 1)


def allocate_order_number(db: Session) -> str:
    prefix = get_settings().ORDER_NUMBER_PREFIX
    number = _allocate(db, Order.order_number, prefix)
    logger.debug("allocated order number %s", number)
    return number


def get_next_order_number(db: Session) -> str:
    """Preview only; the number is not reserved."""
    return _peek(db, Order.order_number, get_settings().ORDER_NUMBER_PREFIX)


def allocate_article_number(db: Session) -> str:
    return _allocate(db, Article.sku, get_settings().ARTICLE_NUMBER_PREFIX)


def get_next_article_number(db: Session) -> str:
    return _peek(db, Article.sku, get_settings().ARTICLE_NUMBER_PREFIX)
