"""Post editor support for the appearance date chooser."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

if TYPE_CHECKING:
    from debut.appearance.store import AppearanceDateStore
    from debut.db.models import Post

# Form field names
SAVING_FIELD = "saving_appearance_date"
ENABLED_FIELD = "use_appearance_date"
YEAR_FIELD = "appearance_year"
MONTH_FIELD = "appearance_month"
DAY_FIELD = "appearance_day"
HOUR_FIELD = "appearance_hour"
MINUTE_FIELD = "appearance_minute"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def coerce_int(value: Any) -> int:
    """Read the leading integer of a form value; anything else is 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value or ""))
    return int(match.group(1)) if match else 0


def _is_checked(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() not in ("", "0")
    return bool(value)


def appearance_date_from_form(form: Mapping[str, Any]) -> str | None:
    """Build ``YYYY-MM-DD HH:MM:00`` from the chooser fields, or None when disabled."""
    if not _is_checked(form.get(ENABLED_FIELD)):
        return None

    year = coerce_int(form.get(YEAR_FIELD))
    month = coerce_int(form.get(MONTH_FIELD))
    day = coerce_int(form.get(DAY_FIELD))
    hour = coerce_int(form.get(HOUR_FIELD))
    minute = coerce_int(form.get(MINUTE_FIELD))
    return f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:00"


async def save_appearance_date(
    db_session: AsyncSession,
    store: AppearanceDateStore,
    post_id: Any,
    form: Mapping[str, Any],
) -> bool | None:
    """Apply a submitted chooser to *post_id*.

    Returns:
        None if the form did not include the chooser, otherwise whether the
        store write touched a row
    """
    post_id = coerce_int(post_id)
    if not post_id or SAVING_FIELD not in form:
        return None
    return await store.set(db_session, post_id, appearance_date_from_form(form))


@dataclass
class AppearanceDateChooser:
    """State of the chooser on the post edit screen."""

    post_id: int
    enabled: bool
    year: str
    month: str
    day: str
    hour: str
    minute: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def form_fields(self) -> dict[str, str]:
        """The chooser as submitted form values."""
        fields = {
            SAVING_FIELD: "1",
            YEAR_FIELD: self.year,
            MONTH_FIELD: self.month,
            DAY_FIELD: self.day,
            HOUR_FIELD: self.hour,
            MINUTE_FIELD: self.minute,
        }
        if self.enabled:
            fields[ENABLED_FIELD] = "1"
        return fields


async def build_chooser(
    db_session: AsyncSession,
    store: AppearanceDateStore,
    post: Post,
    can_publish: bool,
) -> AppearanceDateChooser | None:
    """Chooser state for *post*, or None when the user may not publish.

    Without an appearance date the chooser starts unchecked at the post's own
    publish date.
    """
    post_id = getattr(post, "id", None)
    if not can_publish or post_id is None:
        return None

    # Read before the lookup; a failed lookup rolls back and expires the post
    post_date = post.post_date
    current = await store.get(db_session, post_id)
    shown: datetime = current or post_date or datetime.now()

    return AppearanceDateChooser(
        post_id=post_id,
        enabled=current is not None,
        year=f"{shown.year:04d}",
        month=f"{shown.month:02d}",
        day=f"{shown.day:02d}",
        hour=f"{shown.hour:02d}",
        minute=f"{shown.minute:02d}",
    )
