from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from ..core.enums import JobStatus, Role
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# (name, email, password, role, department, job title, job status)
DEMO_USERS = (
    ("Super Admin", "superadmin@hrconsole.local", "admin123", Role.SUPER_ADMIN, "Management", "Administrator", JobStatus.PERMANENT),
    ("HR Officer", "hr@hrconsole.local", "hr1234", Role.HR, "Human Resources", "HR Officer", JobStatus.PERMANENT),
    ("Demo Employee", "employee@hrconsole.local", "staff123", Role.NORMAL, "Engineering", "Software Engineer", JobStatus.PROBATION),
)


def _strip_create_db_and_use(sql: str) -> str:
    # The target database comes from DB_CONFIG, not from the SQL file.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split on ';' outside of quoted strings."""

    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


@contextmanager
def _connection(db_config: dict, *, with_database: bool = True):
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect(with_database=with_database)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def _run_sql_file(db_config: dict, path: str | Path) -> int:
    sql = _strip_comments(_strip_create_db_and_use(Path(path).read_text(encoding="utf-8")))
    count = 0
    with _connection(db_config) as conn:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
    return count


def ensure_database_exists(db_config: dict) -> None:
    database = DBConfig.from_mapping(db_config).database
    with _connection(db_config, with_database=False) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_sql_file(db_config, schema_path)
    logger.info("Applied schema %s (%d statements)", Path(schema_path).name, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_sql_file(db_config, seed_path)
    logger.info("Applied seed %s (%d statements)", Path(seed_path).name, count)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh the demo accounts with known passwords."""

    with _connection(db_config) as conn:
        cur = conn.cursor(dictionary=True)
        for name, email, password, role, department, job_title, job_status in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                user_id = int(existing["id"])
                cur.execute(
                    "UPDATE users SET name=%s, password_hash=%s, role=%s, is_active=1 WHERE id=%s",
                    (name, password_hash, role.value, user_id),
                )
            else:
                cur.execute(
                    "INSERT INTO users (name, email, password_hash, role) VALUES (%s, %s, %s, %s)",
                    (name, email, password_hash, role.value),
                )
                user_id = int(cur.lastrowid)

            cur.execute(
                """
                INSERT INTO user_personal_details (user_id, department, job_title, job_status,
                                                   shift_start_time, shift_end_time, joining_date)
                VALUES (%s, %s, %s, %s, '09:00:00', '18:00:00', CURDATE())
                ON DUPLICATE KEY UPDATE department=VALUES(department), job_title=VALUES(job_title)
                """,
                (user_id, department, job_title, job_status.value),
            )
            cur.execute(
                """
                INSERT INTO user_salary_details (user_id, basic_salary, medical_allowance, mobile_allowance, fuel_allowance)
                VALUES (%s, 100000, 5000, 2000, 8000)
                ON DUPLICATE KEY UPDATE user_id=user_id
                """,
                (user_id,),
            )
            logger.info("Demo account ready: %s (%s)", email, role.value)


def list_tables(db_config: dict) -> list[str]:
    with _connection(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
