"""
Base declarativa de SQLAlchemy.
Todos los modelos heredan de esta clase base.
"""
from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func


class TimestampMixin:
    """
    Mixin que agrega created_at / updated_at a los modelos.
    """

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# Base declarativa de SQLAlchemy
Base = declarative_base()
