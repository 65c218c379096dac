import enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship

from contacts_api.db import Base


class Subscription(str, enum.Enum):
    starter = "starter"
    pro = "pro"
    business = "business"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    subscription = Column(
        Enum(Subscription, name="subscription", native_enum=False),
        default=Subscription.starter,
        nullable=False,
    )
    token = Column(String, nullable=True)
    avatar_url = Column(String, default="")
    verify = Column(Boolean, default=False, nullable=False)
    verification_token = Column(String, unique=True, index=True, nullable=False)

    contacts = relationship("Contact", back_populates="owner")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(30), index=True, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    favorite = Column(Boolean, default=False, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", back_populates="contacts")
