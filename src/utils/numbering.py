"""Sequential document numbers (``DC-001``, ``SO-002``, ...)."""

import re
from typing import Optional
from pydantic import BaseModel
from fastapi import HTTPException, status
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession

NUMBER_PADDING = 3

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def increment_document_number(last_number: Optional[str], prefix: str) -> str:
    """Return the number that follows ``last_number``.

    The trailing digits of the last number are incremented and padded to at
    least three digits. Without a previous number, or when it carries no
    digits, numbering restarts at 1.
    """
    if last_number:
        match = _TRAILING_DIGITS.search(last_number)
        if match:
            next_value = int(match.group(1)) + 1
            return f"{prefix}-{str(next_value).zfill(NUMBER_PADDING)}"
    return f"{prefix}-{'1'.zfill(NUMBER_PADDING)}"


async def next_document_number(session: AsyncSession, column, prefix: str) -> str:
    # Longer numbers first, so DC-1000 sorts above DC-999.
    statement = (
        select(column)
        .where(column.like(f"{prefix}-%"))
        .order_by(func.length(column).desc(), column.desc())
        .limit(1)
    )
    result = await session.exec(statement)
    return increment_document_number(result.first(), prefix)


class NextNumberData(BaseModel):
    next_number: str

class NextNumberResponse(BaseModel):
    success: bool
    message: str
    data: NextNumberData


async def assign_document_number(session: AsyncSession, column, prefix: str, requested: Optional[str], label: str) -> str:
    """Use ``requested`` when it is free, otherwise the next number in sequence.

    Raises:
        HTTPException: 400 when ``requested`` is already taken.
    """
    if not requested:
        return await next_document_number(session, column, prefix)

    taken = (await session.exec(select(column).where(column == requested))).first()
    if taken:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} number already exists"
        )
    return requested
