"""
Contribution service — the points ledger.

``Member.total_points`` is a materialized sum of the member's contribution
points. Inserts and deletes adjust it in the same transaction;
``reconcile_member_totals`` detects (and optionally repairs) drift.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Mapping, Optional, Union

import pydantic
import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ValidationError
from app.core.permissions import ActingIdentity, require_capability
from app.core.sanitize import sanitize_free_text
from app.models.contribution import Contribution
from app.models.member import Member
from points_ledger_shared.schemas.contributions import ContributionCreate, MemberDrift

log = structlog.get_logger()

NEWEST_FIRST = (Contribution.date_added.desc(), Contribution.id.asc())


async def create_contribution(
    session: AsyncSession,
    data: Union[ContributionCreate, Mapping[str, Any]],
    identity: ActingIdentity,
) -> Contribution:
    """Record a contribution and credit its points to the member.

    The acting identity is stamped as ``added_by``.
    """
    require_capability(identity, "can_edit")
    values = data.model_dump() if isinstance(data, ContributionCreate) else dict(data)
    for key in ("project_name", "position", "avenue"):
        if isinstance(values.get(key), str):
            values[key] = sanitize_free_text(values[key])
    if not values.get("avenue"):
        values["avenue"] = None
    try:
        data = ContributionCreate.model_validate(values)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid contribution data",
            errors=[f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()],
        ) from exc

    member = await session.get(Member, data.member_reg_no)
    if member is None:
        raise ValidationError(f"Member {data.member_reg_no} does not exist")

    contribution = Contribution(
        member_reg_no=data.member_reg_no,
        project_name=data.project_name,
        time_period=data.time_period,
        position=data.position,
        points=data.points,
        avenue=data.avenue,
        added_by=identity.user_id,
    )
    session.add(contribution)

    member.total_points += contribution.points
    session.add(member)
    await session.flush()

    log.info(
        "contribution.created",
        contribution_id=str(contribution.id),
        reg_no=member.reg_no,
        points=contribution.points,
        total_points=member.total_points,
        actor=str(identity.user_id),
    )
    return contribution


async def delete_contribution(
    session: AsyncSession, contribution_id: uuid.UUID, identity: ActingIdentity
) -> bool:
    """Delete a contribution and debit its points. False if it does not exist."""
    require_capability(identity, "can_edit")
    contribution = await session.get(Contribution, contribution_id)
    if contribution is None:
        return False

    member = await session.get(Member, contribution.member_reg_no)
    if member is not None:
        member.total_points = max(0, member.total_points - contribution.points)
        session.add(member)

    await session.delete(contribution)
    await session.flush()
    log.info(
        "contribution.deleted",
        contribution_id=str(contribution_id),
        reg_no=contribution.member_reg_no,
        actor=str(identity.user_id),
    )
    return True


async def list_contributions(session: AsyncSession) -> list[Contribution]:
    result = await session.execute(select(Contribution).order_by(*NEWEST_FIRST))
    return list(result.scalars().all())


async def list_contributions_for_member(
    session: AsyncSession, reg_no: str
) -> list[Contribution]:
    result = await session.execute(
        select(Contribution)
        .where(Contribution.member_reg_no == reg_no)
        .order_by(*NEWEST_FIRST)
    )
    return list(result.scalars().all())


async def list_contributions_between(
    session: AsyncSession, start: datetime, end: datetime
) -> list[Contribution]:
    """Contributions whose ``date_added`` falls in [start, end]."""
    result = await session.execute(
        select(Contribution)
        .where(Contribution.date_added >= start, Contribution.date_added <= end)
        .order_by(*NEWEST_FIRST)
    )
    return list(result.scalars().all())


async def total_points_across_all_members(session: AsyncSession) -> int:
    """Sum of ``points`` over every contribution row."""
    result = await session.execute(select(Contribution.points))
    return sum(points for points in result.scalars().all())


async def reconcile_member_totals(
    session: AsyncSession,
    identity: Optional[ActingIdentity] = None,
    *,
    apply: bool = False,
) -> list[MemberDrift]:
    """Compare each member's counter with its contribution sum.

    Returns the drifting members. With ``apply`` the counters are rewritten,
    which requires edit capability.
    """
    if apply:
        require_capability(identity, "can_edit")

    sums = await session.execute(
        select(Contribution.member_reg_no, func.sum(Contribution.points))
        .group_by(Contribution.member_reg_no)
    )
    actual_by_member = {reg_no: int(total or 0) for reg_no, total in sums.all()}

    members = await session.execute(select(Member).order_by(Member.reg_no))
    drift: list[MemberDrift] = []
    for member in members.scalars().all():
        actual = actual_by_member.get(member.reg_no, 0)
        if member.total_points == actual:
            continue
        drift.append(MemberDrift(reg_no=member.reg_no, stored=member.total_points, actual=actual))
        if apply:
            member.total_points = actual
            session.add(member)

    if apply and drift:
        await session.flush()
    log.info("ledger.reconciled", drifting=len(drift), applied=apply)
    return drift
