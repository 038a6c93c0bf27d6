import io

import pytest

from app.crm import create_app
from app.crm.db import session_scope
from app.crm.models import Base
from app.crm.modules.customers.models import CustomerRecord


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_LOCAL_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("S3_BUCKET_CUSTOMER", "customers")
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add(CustomerRecord(id=5, name="Alex", email="a@x.com", password="hash", age=30, gender="MALE"))

    return app.test_client()


def _register(client, **overrides):
    payload = {"name": "Sam", "email": "sam@x.com", "password": "pw", "age": 22, "gender": "FEMALE"}
    payload.update(overrides)
    return client.post("/api/v1/customers", json=payload)


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_list_and_detail(client):
    r = client.get("/api/v1/customers")
    assert r.status_code == 200
    assert [c["email"] for c in r.json] == ["a@x.com"]

    r = client.get("/api/v1/customers/5")
    assert r.status_code == 200
    assert r.json["name"] == "Alex"
    assert r.json["roles"] == ["ROLE_USER"]
    assert "password" not in r.json


def test_detail_not_found(client):
    r = client.get("/api/v1/customers/99")
    assert r.status_code == 404
    assert r.json["message"] == "customer with id [99] not found"


def test_register_then_duplicate(client):
    assert _register(client).status_code == 201
    r = _register(client, name="Other")
    assert r.status_code == 409
    assert r.json["message"] == "email already taken"
    assert len(client.get("/api/v1/customers").json) == 2


def test_register_rejects_bad_payload(client):
    r = _register(client, gender="OTHER", age="old")
    assert r.status_code == 400
    assert "gender" in r.json["message"]
    assert "age" in r.json["message"]


def test_update_persists_and_rejects_noop(client):
    r = client.put("/api/v1/customers/5", json={"age": 31})
    assert r.status_code == 200
    assert client.get("/api/v1/customers/5").json["age"] == 31

    r = client.put("/api/v1/customers/5", json={"age": 31, "name": "Alex"})
    assert r.status_code == 400
    assert r.json["message"] == "no data changes found"


def test_update_email_conflict(client):
    _register(client, email="taken@x.com")
    r = client.put("/api/v1/customers/5", json={"email": "taken@x.com"})
    assert r.status_code == 409
    assert client.get("/api/v1/customers/5").json["email"] == "a@x.com"


def test_delete(client):
    assert client.delete("/api/v1/customers/5").status_code == 200
    assert client.get("/api/v1/customers/5").status_code == 404
    assert client.delete("/api/v1/customers/5").status_code == 404


def test_profile_image_round_trip(client, tmp_path):
    r = client.post(
        "/api/v1/customers/5/profile-image",
        data={"file": (io.BytesIO(b"img-bytes"), "me.png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 200
    assert (tmp_path / "storage" / "customers" / "profile-images" / "5" / "me.png").read_bytes() == b"img-bytes"

    r = client.get("/api/v1/customers/5/profile-image/me.png")
    assert r.status_code == 200
    assert r.data == b"img-bytes"


def test_profile_image_empty_upload(client, tmp_path):
    r = client.post(
        "/api/v1/customers/5/profile-image",
        data={"file": (io.BytesIO(b""), "empty.png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 400
    assert not (tmp_path / "storage" / "customers").exists()


def test_profile_image_missing_object(client):
    r = client.get("/api/v1/customers/5/profile-image/nope.png")
    assert r.status_code == 500


@pytest.mark.parametrize("body", [[1, 2], "str", 5])
def test_register_rejects_non_object_body(client, body):
    r = client.post("/api/v1/customers", json=body)
    assert r.status_code == 400
    assert r.json["message"] == "request body must be a JSON object."


def test_update_rejects_non_object_body(client):
    r = client.put("/api/v1/customers/5", json=["name", "x"])
    assert r.status_code == 400
    assert client.get("/api/v1/customers/5").json["name"] == "Alex"


def test_register_rejects_unhashable_gender(client):
    r = _register(client, gender=["MALE"])
    assert r.status_code == 400
    assert "gender" in r.json["message"]


def test_profile_image_filename_cannot_cross_customers(client, tmp_path):
    with session_scope(client.application) as s:
        s.add(CustomerRecord(id=7, name="Taylor", email="t@x.com", password="hash", age=41, gender="FEMALE"))
    client.post(
        "/api/v1/customers/7/profile-image",
        data={"file": (io.BytesIO(b"ORIGINAL"), "me.png")},
        content_type="multipart/form-data",
    )

    r = client.post(
        "/api/v1/customers/5/profile-image",
        data={"file": (io.BytesIO(b"EVIL"), "../7/me.png")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 200
    bucket = tmp_path / "storage" / "customers" / "profile-images"
    assert (bucket / "7" / "me.png").read_bytes() == b"ORIGINAL"
    assert (bucket / "5" / "7_me.png").read_bytes() == b"EVIL"

    r = client.get("/api/v1/customers/5/profile-image/..%2F7%2Fme.png")
    assert r.data != b"ORIGINAL"


def test_profile_image_without_filename(client):
    r = client.post(
        "/api/v1/customers/5/profile-image",
        data={"file": (io.BytesIO(b"data"), "")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 400
