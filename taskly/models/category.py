"""
Category database model
"""
from typing import Optional

from sqlalchemy import Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from taskly.core.database import Base
from taskly.models.mixins import SyncedEntityMixin


class Category(SyncedEntityMixin, Base):
    """
    Category grouping tasks

    Attributes:
        name: Display name, unique ignoring case
        color: Color string (e.g. "#3B82F6")
        icon: Optional icon (emoji or icon name)
    """
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


# Functional index backing the repository's case-insensitive name check
# Reference: https://docs.sqlalchemy.org/en/20/core/constraints.html#functional-indexes
Index("uq_categories_name_lower", func.lower(Category.name), unique=True)
