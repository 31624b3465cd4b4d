"""Appearance date table definition and date helpers."""

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, Integer, MetaData, Table, text

# Storage format of appearance dates at the form and CLI boundaries
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# MySQL's zero date, the column default; reads as "no appearance date"
ZERO_DATE = "0000-00-00 00:00:00"


def build_appearance_table(
    name: str,
    dialect_name: str | None = None,
    charset: str | None = None,
    collate: str | None = None,
) -> Table:
    """Build the auxiliary table holding one appearance date per object id.

    The zero-date default and the charset/collation options only apply on
    MySQL; other backends reject or ignore them.
    """
    date_kwargs = {}
    table_kwargs = {}
    if dialect_name in ("mysql", "mariadb"):
        date_kwargs["server_default"] = text(f"'{ZERO_DATE}'")
        if charset:
            table_kwargs["mysql_charset"] = charset
        if collate:
            table_kwargs["mysql_collate"] = collate

    return Table(
        name,
        MetaData(),
        Column(
            "appearance_object_id",
            BigInteger().with_variant(Integer, "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        Column("appearance_date", DateTime(timezone=False), nullable=False, **date_kwargs),
        **table_kwargs,
    )


def parse_appearance_date(value: datetime | str | None) -> datetime | None:
    """Normalize an appearance date; empty and zero values mean none.

    Raises:
        ValueError: If a string is not in ``YYYY-MM-DD HH:MM:SS`` form.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    value = value.strip()
    if not value or value == ZERO_DATE:
        return None
    return datetime.strptime(value, DATE_FORMAT)


def format_appearance_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def is_elapsed(value: datetime | str | None, now: datetime) -> bool:
    """True when *value* is a real date strictly earlier than *now*."""
    try:
        date = parse_appearance_date(value)
    except ValueError:
        return False
    return date is not None and date < now
