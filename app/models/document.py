"""Uploaded PDF documents and their grant-list shares."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)
    # Opaque locator returned by the storage backend; never exposed to clients
    storage_locator = Column(String(512), nullable=False)
    file_size = Column(Integer, nullable=False)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Single active share link. Issuing a new one overwrites both columns.
    share_token = Column(String(1024), nullable=True)
    share_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    owner = relationship("User", back_populates="documents")
    signatures = relationship("Signature", back_populates="document", order_by="Signature.id")
    shares = relationship("DocumentShare", back_populates="document", order_by="DocumentShare.id")


class DocumentShare(Base):
    """A registered user the owner granted view/sign access to."""
    __tablename__ = "document_shares"
    __table_args__ = (UniqueConstraint("document_id", "user_id", name="uq_document_shares_document_user"),)

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    document = relationship("Document", back_populates="shares")
    user = relationship("User")
