from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from debut.db.base import Base


class Option(Base):
    """Persisted key/value site option."""

    __tablename__ = "options"

    key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
