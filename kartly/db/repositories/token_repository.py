# kartly/db/repositories/token_repository.py
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects import postgresql, sqlite

from kartly.db.base import new_id
from kartly.db.models.token_tracker import TokenTracker

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class TokenTrackerRepository:
    """Per-vendor, per-day counters"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def increment(self, vendor_id: str, date_key: str) -> int:
        """
        Bump the (vendor, date) counter and return the new value.

        A single INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement, so
        concurrent callers are serialized by the unique constraint and never
        observe the same value.
        """
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Atomic token upsert not supported on {dialect}")

        stmt = insert(TokenTracker).values(
            id=new_id(),
            vendor_id=vendor_id,
            date=date_key,
            last_token=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TokenTracker.vendor_id, TokenTracker.date],
            set_={
                "last_token": TokenTracker.last_token + 1,
                "updated_at": datetime.utcnow(),
            },
        ).returning(TokenTracker.last_token)

        result = await self.session.execute(stmt)
        return result.scalar_one()
