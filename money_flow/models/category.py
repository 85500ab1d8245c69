"""
Product category model.

Read-only here: categories are maintained by the catalog and
only used to group sales for category performance.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from money_flow.models.base import Base


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)

    products: Mapped[list["Product"]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<Category {self.name}>"
