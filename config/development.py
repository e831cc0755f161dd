import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_console"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# Attendance classification
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "15"))
HALF_DAY_MINUTES = int(os.getenv("HALF_DAY_MINUTES", "240"))

# Payroll deductions
EOBI_EMPLOYEE_CONTRIBUTION = os.getenv("EOBI_EMPLOYEE_CONTRIBUTION", "370")
PF_RATE = os.getenv("PF_RATE", "0.05")
TAX_RATE = os.getenv("TAX_RATE", "0")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
