from advanced_alchemy.base import BigIntAuditBase


class Base(BigIntAuditBase):
    """Declarative base for Debut models (integer ids plus audit timestamps)."""

    __abstract__ = True
