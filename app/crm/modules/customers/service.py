"""
Customer service: validation and persistence over the customer DAO and
the blob store.

Email uniqueness is checked here before every insert/update. The check and
the write are not atomic; the `customers.email` unique constraint is what
catches two concurrent requests racing for the same address, and its
IntegrityError reaches the caller untouched.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Protocol

from werkzeug.utils import secure_filename

from app.crm.errors import DuplicateResourceError, ImageUploadError, RequestValidationError, ResourceNotFoundError
from app.crm.modules.customers.dao import CustomerDao
from app.crm.modules.customers.models import Customer, CustomerDTO
from app.crm.modules.customers.requests import CustomerRegistrationRequest, CustomerUpdateRequest
from app.crm.security import PasswordEncoder
from app.crm.storage import S3Buckets, Storage, StorageError

logger = logging.getLogger(__name__)


class UploadedFile(Protocol):
    filename: str | None

    def read(self) -> bytes: ...


def profile_image_key(customer_id: int, filename: str) -> str:
    return f"profile-images/{customer_id}/{filename}"


class CustomerService:
    def __init__(
        self,
        customer_dao: CustomerDao,
        customer_dto_mapper: Callable[[Customer], CustomerDTO],
        password_encoder: PasswordEncoder,
        storage: Storage,
        buckets: S3Buckets,
    ):
        self.customer_dao = customer_dao
        self.customer_dto_mapper = customer_dto_mapper
        self.password_encoder = password_encoder
        self.storage = storage
        self.buckets = buckets

    def get_all_customers(self) -> list[CustomerDTO]:
        return [self.customer_dto_mapper(c) for c in self.customer_dao.select_all_customers()]

    def get_customer(self, customer_id: int) -> CustomerDTO:
        return self.customer_dto_mapper(self._load_or_throw(customer_id))

    def add_customer(self, req: CustomerRegistrationRequest) -> None:
        if self.customer_dao.exists_customer_with_email(req.email):
            logger.warning("Registration rejected: email already taken")
            raise DuplicateResourceError("email already taken")

        customer = Customer(
            name=req.name,
            email=req.email,
            password=self.password_encoder.encode(req.password),
            age=req.age,
            gender=req.gender,
        )
        created = self.customer_dao.insert_customer(customer)
        logger.info("Customer created (id=%s)", created.id)

    def delete_customer_by_id(self, customer_id: int) -> None:
        self._check_if_customer_exists_or_throw(customer_id)
        # Profile images stay in the bucket.
        self.customer_dao.delete_customer_by_id(customer_id)
        logger.info("Customer deleted (id=%s)", customer_id)

    def update_customer(self, customer_id: int, update_request: CustomerUpdateRequest) -> None:
        """
        Apply the fields of `update_request` that are set and differ from the
        stored values, in one DAO write.

        Raises DuplicateResourceError when a new email belongs to someone
        else and RequestValidationError when nothing would change.
        """
        customer = self._load_or_throw(customer_id)

        changes: dict[str, Any] = {}

        if update_request.name is not None and update_request.name != customer.name:
            changes["name"] = update_request.name

        if update_request.age is not None and update_request.age != customer.age:
            changes["age"] = update_request.age

        if update_request.email is not None and update_request.email != customer.email:
            if self.customer_dao.exists_customer_with_email(update_request.email):
                logger.warning("Update of customer %s rejected: email already taken", customer_id)
                raise DuplicateResourceError("email already taken")
            changes["email"] = update_request.email

        if not changes:
            raise RequestValidationError("no data changes found")

        self.customer_dao.update_customer(dataclasses.replace(customer, **changes))
        logger.info("Customer updated (id=%s fields=%s)", customer_id, sorted(changes))

    def upload_customer_profile_image(self, customer_id: int, file: UploadedFile | None) -> None:
        self._check_if_customer_exists_or_throw(customer_id)

        data = file.read() if file is not None else b""
        if not data:
            raise RequestValidationError("file is empty")

        filename = secure_filename(file.filename or "")
        if not filename:
            raise RequestValidationError("file name is missing")

        key = profile_image_key(customer_id, filename)
        try:
            self.storage.put_object(
                self.buckets.customer,
                key,
                data,
                content_type=getattr(file, "mimetype", None),
            )
        except StorageError as e:
            logger.exception("Profile image upload failed (customer_id=%s key=%s)", customer_id, key)
            raise ImageUploadError("failed to upload file to S3") from e
        # TODO: persist the image key on the customer row once the schema has a column for it.
        logger.info("Profile image stored (customer_id=%s key=%s bytes=%d)", customer_id, key, len(data))

    def get_customer_profile_image(self, customer_id: int, filename: str) -> bytes:
        self._check_if_customer_exists_or_throw(customer_id)
        safe_name = secure_filename(filename or "")
        if not safe_name:
            raise RequestValidationError("filename is invalid")
        return self.storage.get_object(self.buckets.customer, profile_image_key(customer_id, safe_name))

    def _load_or_throw(self, customer_id: int) -> Customer:
        customer = self.customer_dao.select_customer_by_id(customer_id)
        if customer is None:
            raise ResourceNotFoundError(f"customer with id [{customer_id}] not found")
        return customer

    def _check_if_customer_exists_or_throw(self, customer_id: int) -> None:
        if not self.customer_dao.exists_customer_by_id(customer_id):
            raise ResourceNotFoundError(f"customer with id [{customer_id}] not found")
