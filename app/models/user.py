from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    # Same id as the token "sub" claim
    id = Column(String(64), primary_key=True, index=True)

    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default="customer")  # customer / admin

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
