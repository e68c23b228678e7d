"""
Member service: lookups, registration, profile edits and search.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import pydantic
import structlog
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import DuplicateKey, ValidationError
from app.core.permissions import ActingIdentity, require_capability
from app.core.sanitize import sanitize_free_text, sanitize_search_term
from app.core.storage import ObjectStore, generate_object_path
from app.models.member import Member
from points_ledger_shared.schemas.members import MemberCreate, MemberUpdate

log = structlog.get_logger()

# Fields that are never update targets: the natural key and the
# materialized counter (maintained by the contribution service).
IMMUTABLE_FIELDS = ("reg_no", "total_points")

FREE_TEXT_FIELDS = ("full_name", "name_with_initials", "batch", "faculty")

LEDGER_ORDER = (Member.total_points.desc(), Member.reg_no.asc())


def _duplicate_message(reg_no: str) -> str:
    return f"Member with registration number {reg_no} already exists"


def _clean_free_text(values: dict[str, Any]) -> dict[str, Any]:
    for key in FREE_TEXT_FIELDS:
        if isinstance(values.get(key), str):
            values[key] = sanitize_free_text(values[key])
    return values


def _validated(schema, values: dict[str, Any]):
    """Validate already-sanitized values, so markup-only input counts as empty."""
    try:
        return schema.model_validate(values)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid member data",
            errors=[f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()],
        ) from exc


async def get_member(session: AsyncSession, reg_no: str) -> Optional[Member]:
    """Look up a member by registration number. Returns None when absent."""
    result = await session.execute(select(Member).where(Member.reg_no == reg_no))
    return result.scalar_one_or_none()


async def list_members(session: AsyncSession) -> list[Member]:
    result = await session.execute(select(Member).order_by(*LEDGER_ORDER))
    return list(result.scalars().all())


async def get_top_members(session: AsyncSession, limit: int = 3) -> list[Member]:
    result = await session.execute(select(Member).order_by(*LEDGER_ORDER).limit(limit))
    return list(result.scalars().all())


async def list_members_by_faculty(session: AsyncSession, faculty: str) -> list[Member]:
    result = await session.execute(
        select(Member).where(Member.faculty == faculty).order_by(*LEDGER_ORDER)
    )
    return list(result.scalars().all())


async def count_members(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Member))
    return int(result.scalar_one())


async def create_member(
    session: AsyncSession,
    data: Union[MemberCreate, Mapping[str, Any]],
    identity: ActingIdentity,
) -> Member:
    """Register a new member. The registration number must be unused."""
    require_capability(identity, "can_edit")
    raw = data.model_dump() if isinstance(data, MemberCreate) else dict(data)
    values = _validated(MemberCreate, _clean_free_text(raw)).model_dump()
    values["reg_no"] = values["reg_no"].strip()

    if await get_member(session, values["reg_no"]) is not None:
        raise DuplicateKey(_duplicate_message(values["reg_no"]))

    member = Member(**values)
    session.add(member)
    try:
        await session.flush()
    except IntegrityError as exc:
        # Another writer committed the same key between the check and the insert.
        await session.rollback()
        raise DuplicateKey(_duplicate_message(values["reg_no"])) from exc

    log.info(
        "member.created",
        reg_no=member.reg_no,
        actor=str(identity.user_id),
        total_points=member.total_points,
    )
    return member


async def update_member(
    session: AsyncSession,
    reg_no: str,
    updates: Union[MemberUpdate, Mapping[str, Any]],
    identity: ActingIdentity,
) -> Optional[Member]:
    """Apply a partial profile edit. Returns None if the member does not exist."""
    require_capability(identity, "can_edit")
    if isinstance(updates, MemberUpdate):
        raw = updates.model_dump(exclude_unset=True)
    else:
        raw = dict(updates)
        forbidden = [key for key in IMMUTABLE_FIELDS if key in raw]
        if forbidden:
            raise ValidationError(
                f"Field cannot be updated: {', '.join(forbidden)}",
                errors=[f"{key} is immutable" for key in forbidden],
            )
    changes = _validated(MemberUpdate, _clean_free_text(raw)).model_dump(exclude_unset=True)

    member = await get_member(session, reg_no)
    if member is None:
        return None

    for key, value in changes.items():
        setattr(member, key, value)
    session.add(member)
    await session.flush()
    await session.refresh(member)

    log.info("member.updated", reg_no=reg_no, fields=sorted(changes), actor=str(identity.user_id))
    return member


def _escape_like(term: str) -> str:
    # % and \ are already stripped by the sanitizer; _ is still a wildcard.
    return term.replace("_", "\\_")


async def search_members(session: AsyncSession, term: Any) -> list[Member]:
    """Case-insensitive match on registration number, full name and initials.

    An input that sanitizes to nothing returns [] without touching the store.
    """
    sanitized = sanitize_search_term(term, get_settings().search_max_length)
    if not sanitized:
        return []

    # The pattern travels as a bound parameter, which needs the literal
    # quote rather than its filter-expression escape.
    literal = sanitized.replace("''", "'")
    pattern = f"%{_escape_like(literal)}%"
    result = await session.execute(
        select(Member)
        .where(
            or_(
                Member.reg_no.ilike(pattern, escape="\\"),
                Member.full_name.ilike(pattern, escape="\\"),
                Member.name_with_initials.ilike(pattern, escape="\\"),
            )
        )
        .order_by(*LEDGER_ORDER)
    )
    return list(result.scalars().all())


async def upload_member_photo(
    store: ObjectStore,
    filename: str,
    content: bytes,
    identity: ActingIdentity,
    content_type: Optional[str] = None,
) -> str:
    """Store a photo under a generated unique path and return its public URL."""
    require_capability(identity, "can_edit")
    if not content:
        raise ValidationError("Photo file is empty")
    path = generate_object_path(filename)
    await store.upload(path, content, content_type)
    return store.public_url(path)
