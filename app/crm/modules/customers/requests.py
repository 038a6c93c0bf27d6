"""
Request payloads accepted by the customer service, plus the field checks
the HTTP layer runs before handing them over.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.crm.errors import RequestValidationError
from app.crm.modules.customers.models import Gender


@dataclass(frozen=True)
class CustomerRegistrationRequest:
    name: str
    email: str
    password: str
    age: int
    gender: Gender


@dataclass(frozen=True)
class CustomerUpdateRequest:
    """None means "leave as is"."""

    name: str | None = None
    email: str | None = None
    age: int | None = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _looks_like_email(value: str) -> bool:
    local, sep, domain = value.partition("@")
    return bool(sep and local and "." in domain)


def _require_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise RequestValidationError("request body must be a JSON object.")
    return payload


def validate_registration_payload(payload: dict) -> list[str]:
    """Validate a registration payload. Returns list of errors."""
    errors = []
    for name in ("name", "email", "password"):
        v = payload.get(name)
        if not isinstance(v, str) or not v.strip():
            errors.append(f"{name} is required.")
    email = payload.get("email")
    if isinstance(email, str) and email.strip() and not _looks_like_email(email.strip()):
        errors.append("email is invalid.")
    age = payload.get("age")
    if not _is_int(age) or age < 0:
        errors.append("age must be a non-negative integer.")
    gender = payload.get("gender")
    if not isinstance(gender, str) or gender not in {g.value for g in Gender}:
        errors.append(f"gender must be one of: {', '.join(g.value for g in Gender)}")
    return errors


def validate_update_payload(payload: dict) -> list[str]:
    """Validate a partial update payload. Absent/null fields are allowed."""
    errors = []
    name = payload.get("name")
    if name is not None and (not isinstance(name, str) or not name.strip()):
        errors.append("name must be a non-empty string.")
    email = payload.get("email")
    if email is not None and (not isinstance(email, str) or not _looks_like_email(email.strip())):
        errors.append("email is invalid.")
    age = payload.get("age")
    if age is not None and (not _is_int(age) or age < 0):
        errors.append("age must be a non-negative integer.")
    return errors


def parse_registration_request(payload: Any) -> CustomerRegistrationRequest:
    payload = _require_object(payload)
    errors = validate_registration_payload(payload)
    if errors:
        raise RequestValidationError(" ".join(errors))
    return CustomerRegistrationRequest(
        name=payload["name"].strip(),
        email=payload["email"].strip(),
        password=payload["password"],
        age=payload["age"],
        gender=Gender(payload["gender"]),
    )


def parse_update_request(payload: Any) -> CustomerUpdateRequest:
    payload = _require_object(payload)
    errors = validate_update_payload(payload)
    if errors:
        raise RequestValidationError(" ".join(errors))
    name = payload.get("name")
    email = payload.get("email")
    return CustomerUpdateRequest(
        name=name.strip() if name is not None else None,
        email=email.strip() if email is not None else None,
        age=payload.get("age"),
    )
