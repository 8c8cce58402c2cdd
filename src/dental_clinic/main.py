from __future__ import annotations

import importlib
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .bulletin.controller import register as register_bulletin
from .clinics.controller import register as register_clinics
from .common.logger import configure_logging, get_logger
from .contracts.controller import register as register_contracts
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .inventory.controller import register as register_inventory
from .payroll.controller import register as register_payroll
from .reports.controller import register as register_reports
from .settings import get_settings_module
from .users.controller import register as register_users

logger = get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    When no container is passed one is built against MySQL from the settings
    module selected by APP_ENV (and the schema/demo seed applied if enabled).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            grace_minutes=int(getattr(settings, "ATTENDANCE_GRACE_MINUTES", 5)),
            qr_radius=int(getattr(settings, "QR_RADIUS_METERS", 100)),
            payroll_calculator=str(getattr(settings, "PAYROLL_CALCULATOR", "simplified")),
        )

    register_users(app, container)
    register_clinics(app, container)
    register_attendance(app, container)
    register_payroll(app, container)
    register_reports(app, container)
    register_inventory(app, container)
    register_contracts(app, container)
    register_bulletin(app, container)

    return app
