from sqlalchemy import Column, String, Integer, DateTime, JSON, PrimaryKeyConstraint
from sqlalchemy.sql import func
from attractions.database import Base

# ================================
# Documents
# ================================
class Document(Base):
    """A keyed JSON document inside a named collection"""
    __tablename__ = "documents"
    __table_args__ = (
        PrimaryKeyConstraint("collection", "key", name="pk_documents"),
    )

    collection = Column(String(100), nullable=False, index=True)
    key = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    # Bumped on every write; guards conditional updates
    version = Column(Integer, nullable=False, default=1, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
