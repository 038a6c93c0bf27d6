from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request

from app.crm.db import db_session
from app.crm.modules.customers.dao import SqlAlchemyCustomerDao
from app.crm.modules.customers.models import customer_dto_mapper
from app.crm.modules.customers.requests import parse_registration_request, parse_update_request
from app.crm.modules.customers.service import CustomerService
from app.crm.security import PasswordEncoder
from app.crm.storage import buckets_from_config, storage_from_config

bp = Blueprint("customers", __name__)


def _customer_service() -> CustomerService:
    return CustomerService(
        customer_dao=SqlAlchemyCustomerDao(db_session()),
        customer_dto_mapper=customer_dto_mapper,
        password_encoder=PasswordEncoder(),
        storage=storage_from_config(current_app.config),
        buckets=buckets_from_config(current_app.config),
    )


# ---------- Read ----------
@bp.get("")
def customers_list():
    return jsonify([c.to_dict() for c in _customer_service().get_all_customers()])


@bp.get("/<int:customer_id>")
def customer_detail(customer_id: int):
    return jsonify(_customer_service().get_customer(customer_id).to_dict())


# ---------- Write ----------
@bp.post("")
def customer_register():
    req = parse_registration_request(request.get_json(silent=True))
    _customer_service().add_customer(req)
    db_session().commit()
    return "", 201


@bp.put("/<int:customer_id>")
def customer_update(customer_id: int):
    req = parse_update_request(request.get_json(silent=True))
    _customer_service().update_customer(customer_id, req)
    db_session().commit()
    return "", 200


@bp.delete("/<int:customer_id>")
def customer_delete(customer_id: int):
    _customer_service().delete_customer_by_id(customer_id)
    db_session().commit()
    return "", 200


# ---------- Profile image ----------
@bp.post("/<int:customer_id>/profile-image")
def customer_profile_image_upload(customer_id: int):
    _customer_service().upload_customer_profile_image(customer_id, request.files.get("file"))
    return "", 200


@bp.get("/<int:customer_id>/profile-image/<filename>")
def customer_profile_image_download(customer_id: int, filename: str):
    data = _customer_service().get_customer_profile_image(customer_id, filename)
    return Response(data, mimetype="application/octet-stream")
