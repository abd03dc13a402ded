"""Signature annotations: positioned text marks on a document page."""
import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

DEFAULT_TEXT = "Signature Here"
DEFAULT_FONT = "Arial"
DEFAULT_FONT_SIZE = 24
DEFAULT_COLOR = "#000000"


class SignatureStatus(str, enum.Enum):
    pending = "pending"
    signed = "signed"
    rejected = "rejected"


class Signature(Base):
    __tablename__ = "signatures"
    __table_args__ = (
        CheckConstraint("page >= 1", name="ck_signatures_page_positive"),
        CheckConstraint(
            "(status = 'rejected' AND rejection_reason IS NOT NULL AND rejection_reason <> '') "
            "OR (status <> 'rejected' AND rejection_reason IS NULL)",
            name="ck_signatures_rejection_reason",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    # Null for marks placed by an anonymous share-link holder
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    page = Column(Integer, nullable=False)
    # PDF page space, origin top-left as placed; flipped at render time
    x = Column(Float, nullable=False)
    y = Column(Float, nullable=False)

    text = Column(String(255), nullable=False, default=DEFAULT_TEXT)
    font = Column(String(64), nullable=False, default=DEFAULT_FONT)
    font_size = Column(Float, nullable=False, default=DEFAULT_FONT_SIZE)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)

    status = Column(SQLEnum(SignatureStatus), nullable=False, default=SignatureStatus.pending)
    rejection_reason = Column(String(1000), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    document = relationship("Document", back_populates="signatures")
    user = relationship("User")
