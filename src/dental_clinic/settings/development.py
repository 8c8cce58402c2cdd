import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "dental_clinic"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

ATTENDANCE_GRACE_MINUTES = int(os.getenv("ATTENDANCE_GRACE_MINUTES", "5"))
QR_RADIUS_METERS = int(os.getenv("QR_RADIUS_METERS", "100"))
# withholding rule: "simplified" (간이세액표) or "flat_rate" (3.3%)
PAYROLL_CALCULATOR = os.getenv("PAYROLL_CALCULATOR", "simplified")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed a demo clinic owner on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
