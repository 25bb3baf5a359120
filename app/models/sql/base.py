"""Shared SQLAlchemy declarative base for the target store tables.

Tables are created on first use by `SqlTargetStore` via ``Base.metadata.create_all``.
"""

from sqlalchemy.orm import declarative_base


Base = declarative_base()
