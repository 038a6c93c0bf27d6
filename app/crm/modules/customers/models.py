from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.crm.models import Base


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


@dataclass(frozen=True)
class Customer:
    """
    Immutable snapshot of a customer row.

    `id` is None until the row has been inserted. Updates never mutate a
    snapshot; the service builds a new one with `dataclasses.replace`.
    """

    name: str
    email: str
    password: str = field(repr=False)
    age: int
    gender: Gender
    id: int | None = None


class CustomerRecord(Base):
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("email", name="customer_email_unique"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


# Every customer holds the same single authority for now.
DEFAULT_ROLES = ("ROLE_USER",)


@dataclass(frozen=True)
class CustomerDTO:
    id: int
    name: str
    email: str
    gender: Gender
    age: int
    roles: list[str]
    username: str
    password_expired: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "gender": self.gender.value,
            "age": self.age,
            "roles": list(self.roles),
            "username": self.username,
            "passwordExpired": self.password_expired,
        }


def customer_dto_mapper(customer: Customer) -> CustomerDTO:
    """Project a customer to its outward-facing view (no password hash)."""
    return CustomerDTO(
        id=customer.id,
        name=customer.name,
        email=customer.email,
        gender=customer.gender,
        age=customer.age,
        roles=list(DEFAULT_ROLES),
        username=customer.email,
        password_expired=False,
    )
