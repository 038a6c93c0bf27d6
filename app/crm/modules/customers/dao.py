from __future__ import annotations

import abc
from datetime import datetime

from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from app.crm.modules.customers.models import Customer, CustomerRecord, Gender


class CustomerDao(abc.ABC):
    """Persistence port for customer rows."""

    @abc.abstractmethod
    def select_all_customers(self) -> list[Customer]: ...

    @abc.abstractmethod
    def select_customer_by_id(self, customer_id: int) -> Customer | None: ...

    @abc.abstractmethod
    def insert_customer(self, customer: Customer) -> Customer: ...

    @abc.abstractmethod
    def exists_customer_with_email(self, email: str) -> bool: ...

    @abc.abstractmethod
    def exists_customer_by_id(self, customer_id: int) -> bool: ...

    @abc.abstractmethod
    def delete_customer_by_id(self, customer_id: int) -> None: ...

    @abc.abstractmethod
    def update_customer(self, customer: Customer) -> None: ...


def _to_customer(row: CustomerRecord) -> Customer:
    return Customer(
        id=row.id,
        name=row.name,
        email=row.email,
        password=row.password,
        age=row.age,
        gender=Gender(row.gender),
    )


class SqlAlchemyCustomerDao(CustomerDao):
    """
    DAO over a SQLAlchemy session.

    Writes are flushed, never committed: the caller owns the transaction.
    """

    def __init__(self, session: Session):
        self.s = session

    def select_all_customers(self) -> list[Customer]:
        rows = self.s.scalars(select(CustomerRecord).order_by(CustomerRecord.id)).all()
        return [_to_customer(r) for r in rows]

    def select_customer_by_id(self, customer_id: int) -> Customer | None:
        row = self.s.get(CustomerRecord, customer_id)
        return _to_customer(row) if row else None

    def insert_customer(self, customer: Customer) -> Customer:
        now = datetime.utcnow()
        row = CustomerRecord(
            name=customer.name,
            email=customer.email,
            password=customer.password,
            age=customer.age,
            gender=customer.gender.value,
            created_at=now,
            updated_at=now,
        )
        self.s.add(row)
        self.s.flush()
        return _to_customer(row)

    def exists_customer_with_email(self, email: str) -> bool:
        return bool(self.s.scalar(select(exists().where(CustomerRecord.email == email))))

    def exists_customer_by_id(self, customer_id: int) -> bool:
        return bool(self.s.scalar(select(exists().where(CustomerRecord.id == customer_id))))

    def delete_customer_by_id(self, customer_id: int) -> None:
        self.s.execute(delete(CustomerRecord).where(CustomerRecord.id == customer_id))
        self.s.flush()

    def update_customer(self, customer: Customer) -> None:
        row = self.s.get(CustomerRecord, customer.id)
        if row is None:
            raise LookupError(f"customer row {customer.id} vanished before update")
        row.name = customer.name
        row.email = customer.email
        row.age = customer.age
        row.gender = customer.gender.value
        row.updated_at = datetime.utcnow()
        self.s.flush()
