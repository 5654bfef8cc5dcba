# hrm/services/criteria.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrm.config import settings
from hrm.core.errors import Conflict, InvalidInput, NotFound
from hrm.database import is_unique_violation
from hrm.models.criteria import Criterion, CriteriaSet, CriteriaSetItem
from hrm.services import directory
from hrm.services.scoring import ScoringItem

logger = logging.getLogger(__name__)

CRITERION_KEY = ("hrm_criteria_key_key", "hrm_criteria.key")
CRITERIA_SET_KEYS = (
    "uq_criteria_set_one_active",
    "uq_criteria_set_subject_version",
    "hrm_criteria_sets.",
)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

async def list_criteria(db: AsyncSession) -> List[Criterion]:
    result = await db.execute(select(Criterion).order_by(Criterion.key))
    return list(result.scalars().all())


async def get_criterion(db: AsyncSession, criterion_id: int) -> Criterion:
    criterion = await db.get(Criterion, criterion_id)
    if criterion is None:
        raise NotFound(f"Criterion {criterion_id} not found")
    return criterion


async def _usage_count(db: AsyncSession, criterion_id: int) -> int:
    result = await db.execute(
        select(func.count(CriteriaSetItem.id)).where(CriteriaSetItem.criterion_id == criterion_id)
    )
    return result.scalar_one()


async def create_criterion(
    db: AsyncSession,
    key: str,
    name: str,
    default_scale_max: Optional[int] = None,
    description: Optional[str] = None,
) -> Criterion:
    scale = default_scale_max or settings.DEFAULT_SCALE_MAX
    if not 1 <= scale <= 100:
        raise InvalidInput("Default scale max must be between 1 and 100")
    criterion = Criterion(key=key, name=name, default_scale_max=scale, description=description)
    db.add(criterion)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_unique_violation(e, *CRITERION_KEY):
            raise
        raise Conflict(f"Criterion key {key} already exists")
    await db.refresh(criterion)
    logger.info("Created criterion %s", key)
    return criterion


async def update_criterion(db: AsyncSession, criterion_id: int, **fields) -> Criterion:
    criterion = await get_criterion(db, criterion_id)
    fields = {k: v for k, v in fields.items() if v is not None}
    if not fields:
        raise InvalidInput("No valid fields to update")

    if "key" in fields and fields["key"] != criterion.key:
        if await _usage_count(db, criterion_id):
            raise Conflict("Criterion key cannot change once it is used in a criteria set")
    if "default_scale_max" in fields and not 1 <= fields["default_scale_max"] <= 100:
        raise InvalidInput("Default scale max must be between 1 and 100")

    for name, value in fields.items():
        setattr(criterion, name, value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_unique_violation(e, *CRITERION_KEY):
            raise
        raise Conflict(f"Criterion key {fields.get('key')} already exists")
    await db.refresh(criterion)
    return criterion


async def delete_criterion(db: AsyncSession, criterion_id: int) -> None:
    criterion = await get_criterion(db, criterion_id)
    count = await _usage_count(db, criterion_id)
    if count:
        raise Conflict(f"Cannot delete criterion: it is used in {count} criteria set item(s)")
    await db.delete(criterion)
    await db.commit()
    logger.info("Deleted criterion %s", criterion.key)


# ---------------------------------------------------------------------------
# Per-subject versioned criteria sets
# ---------------------------------------------------------------------------

async def active_set_for(db: AsyncSession, subject_id: int) -> Optional[CriteriaSet]:
    result = await db.execute(
        select(CriteriaSet)
        .where(CriteriaSet.subject_id == subject_id)
        .where(CriteriaSet.active_to.is_(None))
    )
    return result.scalar_one_or_none()


async def criteria_set_history(db: AsyncSession, subject_id: int) -> List[CriteriaSet]:
    result = await db.execute(
        select(CriteriaSet)
        .where(CriteriaSet.subject_id == subject_id)
        .order_by(CriteriaSet.version.desc())
    )
    return list(result.scalars().all())


def scoring_items(criteria_set: CriteriaSet) -> List[ScoringItem]:
    return [
        ScoringItem(criterion_id=item.criterion_id, weight=item.weight, scale_max=item.scale_max)
        for item in criteria_set.items
    ]


def _validate_items(items: Sequence[dict]) -> List[str]:
    errors = []
    if not items:
        return ["At least one criterion is required"]

    seen = set()
    for item in items:
        criterion_id = item["criterion_id"]
        if criterion_id in seen:
            errors.append(f"Criterion {criterion_id} appears more than once")
        seen.add(criterion_id)
        if not 0 <= item["weight"] <= 100:
            errors.append(f"Weight for criterion {criterion_id} must be between 0 and 100")
        scale_max = item.get("scale_max")
        if scale_max is not None and not 1 <= scale_max <= 100:
            errors.append(f"Scale max for criterion {criterion_id} must be between 1 and 100")

    total_weight = sum(item["weight"] for item in items)
    if total_weight != 100:
        errors.append(f"Weights must sum to 100 (current: {total_weight:g})")
    return errors


async def replace_criteria_set(
    db: AsyncSession,
    subject_id: int,
    items: Sequence[dict],
    created_by_id: Optional[int] = None,
) -> CriteriaSet:
    """
    Supersede the subject's current set with a new version.

    ``items`` are dicts with ``criterion_id``, ``weight`` and an optional
    ``scale_max`` (falls back to the criterion's default). The old set is
    stamped and the new one inserted in the same transaction.
    """
    await directory.get_person(db, subject_id)

    errors = _validate_items(items)
    criteria = {}
    for item in items:
        criterion = await db.get(Criterion, item["criterion_id"])
        if criterion is None:
            errors.append(f"Unknown criterion {item['criterion_id']}")
        else:
            criteria[criterion.id] = criterion
    if errors:
        raise InvalidInput("Invalid criteria set", errors)

    now = datetime.now(timezone.utc)
    current = await db.execute(
        select(CriteriaSet)
        .where(CriteriaSet.subject_id == subject_id)
        .where(CriteriaSet.active_to.is_(None))
        .with_for_update()
    )
    previous = current.scalar_one_or_none()
    latest = await db.execute(
        select(func.max(CriteriaSet.version)).where(CriteriaSet.subject_id == subject_id)
    )
    version = (latest.scalar_one() or 0) + 1

    try:
        if previous is not None:
            previous.active_to = now
            # the stamp must land before the new active row exists
            await db.flush()

        new_set = CriteriaSet(
            subject_id=subject_id,
            version=version,
            active_from=now,
            active_to=None,
            created_by_id=created_by_id,
            items=[
                CriteriaSetItem(
                    criterion_id=item["criterion_id"],
                    weight=item["weight"],
                    scale_max=item.get("scale_max") or criteria[item["criterion_id"]].default_scale_max,
                )
                for item in items
            ],
        )
        db.add(new_set)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_unique_violation(e, *CRITERIA_SET_KEYS):
            raise
        logger.warning("Concurrent criteria set replacement for subject %s", subject_id)
        raise Conflict("Criteria set was replaced concurrently; retry")

    logger.info("Subject %s criteria set replaced with version %s", subject_id, version)
    result = await db.execute(
        select(CriteriaSet)
        .where(CriteriaSet.id == new_set.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_criteria_set(db: AsyncSession, criteria_set_id: int) -> CriteriaSet:
    result = await db.execute(select(CriteriaSet).where(CriteriaSet.id == criteria_set_id))
    criteria_set = result.scalar_one_or_none()
    if criteria_set is None:
        raise NotFound(f"Criteria set {criteria_set_id} not found")
    return criteria_set
