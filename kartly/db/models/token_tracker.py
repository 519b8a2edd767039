# kartly/db/models/token_tracker.py
from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint
from kartly.db.base import BaseModel, new_id


class TokenTracker(BaseModel):
    """
    Last token handed out for a vendor on one business day.

    A new row per (vendor, day) is what resets numbering every morning.
    """
    __tablename__ = "token_trackers"
    __table_args__ = (
        UniqueConstraint("vendor_id", "date", name="uq_token_trackers_vendor_date"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    last_token = Column(Integer, default=0, nullable=False)
