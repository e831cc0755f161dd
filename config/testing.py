import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_console_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads-test")
SESSION_DAYS = 1

LATE_GRACE_MINUTES = 15
HALF_DAY_MINUTES = 240

EOBI_EMPLOYEE_CONTRIBUTION = "370"
PF_RATE = "0.05"
TAX_RATE = "0"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
