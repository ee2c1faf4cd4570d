from sqlalchemy import Column, String, Boolean
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType, UTCDateTime


class UserEntity(Base):
    """Platform user as seen by the subscription engine (identity + role)."""

    __tablename__ = "users"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String(20), nullable=False, index=True)  # model, employer, admin
    is_active = Column(Boolean, default=True, nullable=False)
    deleted = Column(
        Boolean, nullable=False, default=False, server_default="false", index=True
    )
    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())
