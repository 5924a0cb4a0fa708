"""
Customer request (inquiry) and notification document models.

Maps to the `requests` and `notifications` collections. Every new request
produces exactly one notification, written in the same transaction.
"""

from __future__ import annotations

from typing import Optional

from schemas.models.base import TimestampedDoc


class RequestDoc(TimestampedDoc):
    """A customer inquiry submitted from the public site."""

    name: str
    phone_number: str
    type: str
    textile_name: Optional[str] = None
    category: Optional[str] = None
    message: Optional[str] = None


class NotificationDoc(TimestampedDoc):
    """Admin-panel notification about a new inquiry."""

    owner: str
    type: str
    is_read: bool = False
