import logging

from flask import Flask, jsonify
from dotenv import load_dotenv

from app.crm.config import load_config
from app.crm.db import init_db, teardown_db_session
from app.crm.errors import CustomerServiceError
from app.crm.models import Base  # noqa: F401  (registers module tables before blueprints import them)
from app.crm.modules.customers.api import bp as customers_bp
from app.crm.routes import bp as routes_bp
from app.crm.storage import StorageError

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    if app.config.get("STORAGE_BACKEND") == "s3":
        missing_s3 = [
            key
            for key in ("S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_BUCKET_CUSTOMER")
            if not app.config.get(key)
        ]
        if missing_s3:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))

    app.register_blueprint(routes_bp)
    app.register_blueprint(customers_bp, url_prefix="/api/v1/customers")

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(CustomerServiceError)
    def _err_customer_service(e: CustomerServiceError):  # type: ignore[no-redef]
        if e.status_code >= 500:
            app.logger.exception("Customer service failure: %s", e.message)
        return jsonify({"message": e.message, "status": e.status_code}), e.status_code

    @app.errorhandler(StorageError)
    def _err_storage(e: StorageError):  # type: ignore[no-redef]
        app.logger.exception("Blob storage failure")
        return jsonify({"message": str(e), "status": 500}), 500

    logger.info("create_app() complete; app ready to serve")

    return app
