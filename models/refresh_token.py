"""
RefreshToken model: one row per outstanding, not yet consumed refresh token.
Fields:
- id (String(36)) - primary key
- user_id (String(36)) - FK to users.id, deleted with the user
- token_hash - SHA-256 hex of the raw token; the token itself is never stored
- expires_at - absolute expiry, equal to the token's `exp` claim
- created_at
"""
from sqlalchemy import Column, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base_model import BaseModel, Base, UTCDateTime


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True)
    expires_at = Column(UTCDateTime(), nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id}>"
