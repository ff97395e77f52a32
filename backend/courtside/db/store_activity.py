# courtside/db/store_activity.py
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from courtside.core.activity import ActivityMetadata, load_metadata
from courtside.models.game_activity import GameActivity


# add an activity row to the current transaction; caller commits
async def append_activity(
    db: AsyncSession,
    game_id: int,
    description: str,
    metadata: ActivityMetadata,
    performed_by: str,
) -> GameActivity:
    activity = GameActivity(
        game_id=game_id,
        activity_type=metadata.kind,
        description=description,
        meta=metadata.model_dump(mode="json"),
        performed_by=performed_by,
    )
    db.add(activity)
    await db.flush()
    return activity


# newest first, metadata validated back into its typed variant
async def list_activities(db: AsyncSession, game_id: int, limit: int | None = None):
    stmt = (
        select(GameActivity)
        .where(GameActivity.game_id == game_id)
        .order_by(GameActivity.id.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    activities = []
    for activity in result.scalars().all():
        row = activity.to_dict()
        if activity.meta is not None:
            row["metadata"] = load_metadata(activity.meta).model_dump(mode="json")
        activities.append(row)
    return activities
