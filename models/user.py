from models.base_model import Base, BaseModel, TimestampMixin
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship


class User(TimestampMixin, BaseModel, Base):
    __tablename__ = "users"
    # Case-sensitive as stored; uniqueness is enforced by the database.
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User id={self.id}>"
