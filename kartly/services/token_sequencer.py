# kartly/services/token_sequencer.py
from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from kartly.core.config import settings
from kartly.db.repositories.token_repository import TokenTrackerRepository


def current_business_date(now: Optional[datetime] = None) -> str:
    """Date key (YYYY-MM-DD) in the configured business timezone. Naive datetimes are UTC."""
    tz = ZoneInfo(settings.BUSINESS_TIMEZONE)
    if now is None:
        moment = datetime.now(tz)
    elif now.tzinfo is None:
        moment = now.replace(tzinfo=timezone.utc).astimezone(tz)
    else:
        moment = now.astimezone(tz)
    return moment.date().isoformat()


class TokenSequencer:
    """Hands out the customer-facing token numbers, 1, 2, 3... per vendor per day"""

    def __init__(self, session: AsyncSession):
        self.repo = TokenTrackerRepository(session)

    async def next_token(
        self,
        vendor_id: str,
        business_date: Union[str, date, datetime, None] = None,
    ) -> int:
        if business_date is None or isinstance(business_date, datetime):
            date_key = current_business_date(business_date)
        elif isinstance(business_date, date):
            date_key = business_date.isoformat()
        else:
            date_key = business_date
        return await self.repo.increment(vendor_id, date_key)
