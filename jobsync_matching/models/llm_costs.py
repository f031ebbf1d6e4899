"""LLM cost tracking model."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, Numeric, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from jobsync_matching.models.base import Base


class LLMCost(Base):
    """One provider call made while normalizing or ranking.

    Rows are grouped by run and by the posting being ranked so the cost of a
    ranking request can be read back per job:
    - operation: classify_degree, classify_eligibility, ranking_insights, embed_text
    - prompt_version: bumped whenever an operation's prompt changes
    """

    __tablename__ = "llm_costs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    run_id: Mapped[str] = mapped_column(String(100), nullable=False)
    job_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    operation: Mapped[str] = mapped_column(String(50), nullable=False)

    model: Mapped[str] = mapped_column(String(100), nullable=False)
    input_tokens: Mapped[int] = mapped_column(Integer, nullable=False)
    output_tokens: Mapped[int] = mapped_column(Integer, nullable=False)

    cost_usd: Mapped[Decimal] = mapped_column(Numeric(10, 6), nullable=False)

    prompt_version: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    @property
    def total_tokens(self) -> int:
        """Total tokens (input + output)."""
        return self.input_tokens + self.output_tokens
