"""Option service for per-site key/value options."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from debut.db.models import Option


def site_scoped_key(site: str, key: str) -> str:
    """Build the option key for *key* on a named site ("" is the main site)."""
    if not site:
        return key
    return f"site:{site}:{key}"


async def get_option(
    db_session: AsyncSession,
    key: str,
) -> str | None:
    """Get an option value by key.

    Args:
        db_session: Database session
        key: Option key

    Returns:
        Option value or None if not found
    """
    result = await db_session.execute(select(Option).where(Option.key == key))
    option = result.scalar_one_or_none()
    return option.value if option else None


async def get_bool_option(db_session: AsyncSession, key: str) -> bool:
    """Read an option as a flag: missing, empty and "0" are False."""
    value = await get_option(db_session, key)
    return bool(value) and value != "0"


async def set_option(
    db_session: AsyncSession,
    key: str,
    value: str | None,
) -> Option:
    """Set an option value, creating or updating as needed.

    Args:
        db_session: Database session
        key: Option key
        value: Option value (can be None)

    Returns:
        The created or updated Option object
    """
    result = await db_session.execute(select(Option).where(Option.key == key))
    option = result.scalar_one_or_none()

    if option:
        option.value = value
    else:
        option = Option(key=key, value=value)
        db_session.add(option)

    await db_session.commit()
    await db_session.refresh(option)
    return option


async def delete_option(
    db_session: AsyncSession,
    key: str,
) -> bool:
    """Delete an option by key.

    Returns:
        True if deleted, False if not found
    """
    result = await db_session.execute(select(Option).where(Option.key == key))
    option = result.scalar_one_or_none()

    if not option:
        return False

    await db_session.delete(option)
    await db_session.commit()
    return True
