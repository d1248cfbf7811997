from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base, BigIntId


class Position(Base):
    """
    Job opening inside a department.

    The lifecycle flags are independent booleans; nothing prevents a position
    from being resolved, archived and trashed at the same time.
    """

    __tablename__: str = "positions"
    __table_args__ = (
        UniqueConstraint("department_id", "name", name="uq_positions_department_name"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    education: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    min_work_exp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    qualification: Mapped[str | None] = mapped_column(Text, nullable=True)
    department_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Lifecycle
    is_resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_trash: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_archive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Screening results
    qualified_candidates: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_cv: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    filtered_cv: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
