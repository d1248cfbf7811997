from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base, BigIntId


class Candidate(Base):
    """
    Applicant for a position, with the storage key of the uploaded CV.

    A candidate counts as qualified for ``Position.filtered_cv`` while its
    score is positive.
    """

    __tablename__: str = "candidates"
    __table_args__ = (
        UniqueConstraint("email", "position_id", name="uq_candidates_email_position"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    domicile: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("positions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # CV artifact
    cv_file: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    cv_file_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Screening
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    skills: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_qualified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
