from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import JobStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, to_decimal
from .model import BankAccountDetails, ContactDetails, Education, EmergencyContact, PersonalDetails, SalaryDetails, User
from .repository import UserRepository

_USER_SELECT = """
    SELECT u.id, u.name, u.email, u.password_hash, u.role, u.is_active, u.manager_id,
           u.profile_picture, u.resume, u.created_at,
           p.department, p.job_category, p.job_title, p.full_job_title, p.abbreviated_job_title,
           p.job_type, p.job_status, p.shift_start_time, p.shift_end_time,
           p.gender, p.date_of_birth, p.joining_date,
           s.basic_salary, s.medical_allowance, s.mobile_allowance, s.fuel_allowance
    FROM users u
    LEFT JOIN user_personal_details p ON p.user_id = u.id
    LEFT JOIN user_salary_details s ON s.user_id = u.id
"""


def _row_to_user(r: dict) -> User:
    return User(
        id=int(r["id"]),
        name=r["name"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        is_active=bool(r["is_active"]),
        manager_id=r.get("manager_id"),
        profile_picture=r.get("profile_picture"),
        resume=r.get("resume"),
        created_at=r.get("created_at"),
        personal=PersonalDetails(
            department=r.get("department"),
            job_category=r.get("job_category"),
            job_title=r.get("job_title"),
            full_job_title=r.get("full_job_title"),
            abbreviated_job_title=r.get("abbreviated_job_title"),
            job_type=r.get("job_type"),
            job_status=JobStatus(r.get("job_status") or JobStatus.PROBATION.value),
            shift_start_time=normalize_mysql_time(r.get("shift_start_time")),
            shift_end_time=normalize_mysql_time(r.get("shift_end_time")),
            gender=r.get("gender"),
            date_of_birth=r.get("date_of_birth"),
            joining_date=r.get("joining_date"),
        ),
        salary=SalaryDetails(
            basic_salary=to_decimal(r.get("basic_salary")),
            medical_allowance=to_decimal(r.get("medical_allowance")),
            mobile_allowance=to_decimal(r.get("mobile_allowance")),
            fuel_allowance=to_decimal(r.get("fuel_allowance")),
        ),
    )


def _personal_params(d: PersonalDetails) -> tuple:
    return (
        d.department,
        d.job_category,
        d.job_title,
        d.full_job_title,
        d.abbreviated_job_title,
        d.job_type,
        d.job_status.value,
        d.shift_start_time,
        d.shift_end_time,
        d.gender,
        d.date_of_birth,
        d.joining_date,
    )


_UPSERT_PERSONAL = """
    INSERT INTO user_personal_details (
        user_id, department, job_category, job_title, full_job_title, abbreviated_job_title,
        job_type, job_status, shift_start_time, shift_end_time, gender, date_of_birth, joining_date
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    ON DUPLICATE KEY UPDATE
        department=VALUES(department), job_category=VALUES(job_category), job_title=VALUES(job_title),
        full_job_title=VALUES(full_job_title), abbreviated_job_title=VALUES(abbreviated_job_title),
        job_type=VALUES(job_type), job_status=VALUES(job_status),
        shift_start_time=VALUES(shift_start_time), shift_end_time=VALUES(shift_end_time),
        gender=VALUES(gender), date_of_birth=VALUES(date_of_birth), joining_date=VALUES(joining_date)
"""

_UPSERT_SALARY = """
    INSERT INTO user_salary_details (user_id, basic_salary, medical_allowance, mobile_allowance, fuel_allowance)
    VALUES (%s, %s, %s, %s, %s)
    ON DUPLICATE KEY UPDATE
        basic_salary=VALUES(basic_salary), medical_allowance=VALUES(medical_allowance),
        mobile_allowance=VALUES(mobile_allowance), fuel_allowance=VALUES(fuel_allowance)
"""


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_USER_SELECT + " WHERE u.id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_USER_SELECT + " WHERE LOWER(u.email)=LOWER(%s)", (email,))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def list_all(self, *, active_only: bool = False) -> Sequence[User]:
        where = " WHERE u.is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_USER_SELECT + where + " ORDER BY u.name ASC")
            return [_row_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        personal: PersonalDetails,
        salary: SalaryDetails,
        manager_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO users (name, email, password_hash, role, manager_id) VALUES (%s, %s, %s, %s, %s)",
                (name, email, password_hash, role.value, manager_id),
            )
            user_id = int(cur.lastrowid)
            cur.execute(_UPSERT_PERSONAL, (user_id, *_personal_params(personal)))
            cur.execute(
                _UPSERT_SALARY,
                (user_id, salary.basic_salary, salary.medical_allowance, salary.mobile_allowance, salary.fuel_allowance),
            )
            return user_id

    def update_personal_details(self, user_id: int, details: PersonalDetails) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_UPSERT_PERSONAL, (int(user_id), *_personal_params(details)))
            return cur.rowcount >= 0

    def update_salary_details(self, user_id: int, salary: SalaryDetails) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _UPSERT_SALARY,
                (int(user_id), salary.basic_salary, salary.medical_allowance, salary.mobile_allowance, salary.fuel_allowance),
            )
            return cur.rowcount >= 0

    def _update_user_column(self, user_id: int, column: str, value) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {column}=%s WHERE id=%s", (value, int(user_id)))
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        return self._update_user_column(user_id, "is_active", 1 if is_active else 0)

    def update_password(self, user_id: int, password_hash: str) -> bool:
        return self._update_user_column(user_id, "password_hash", password_hash)

    def set_manager(self, user_id: int, manager_id: Optional[int]) -> bool:
        return self._update_user_column(user_id, "manager_id", manager_id)

    def set_profile_picture(self, user_id: int, path: str) -> bool:
        return self._update_user_column(user_id, "profile_picture", path)

    def set_resume(self, user_id: int, path: str) -> bool:
        return self._update_user_column(user_id, "resume", path)

    # -------- Profile sections --------
    def get_contact_details(self, user_id: int) -> Optional[ContactDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT phone_number1, phone_number2, email, current_city, current_address,
                       permanent_city, permanent_address
                FROM user_contact_details WHERE user_id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return ContactDetails(**r) if r else None

    def save_contact_details(self, user_id: int, details: ContactDetails) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_contact_details (user_id, phone_number1, phone_number2, email, current_city,
                                                  current_address, permanent_city, permanent_address)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    phone_number1=VALUES(phone_number1), phone_number2=VALUES(phone_number2),
                    email=VALUES(email), current_city=VALUES(current_city),
                    current_address=VALUES(current_address), permanent_city=VALUES(permanent_city),
                    permanent_address=VALUES(permanent_address)
                """,
                (
                    int(user_id),
                    details.phone_number1,
                    details.phone_number2,
                    details.email,
                    details.current_city,
                    details.current_address,
                    details.permanent_city,
                    details.permanent_address,
                ),
            )

    def list_education(self, user_id: int) -> Sequence[Education]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT institute, degree, field_of_study, gpa, year_of_completion
                FROM user_education WHERE user_id=%s ORDER BY year_of_completion DESC, id ASC
                """,
                (int(user_id),),
            )
            return [Education(**r) for r in fetchall(cur)]

    def replace_education(self, user_id: int, items: Sequence[Education]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_education WHERE user_id=%s", (int(user_id),))
            for e in items:
                cur.execute(
                    """
                    INSERT INTO user_education (user_id, institute, degree, field_of_study, gpa, year_of_completion)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (int(user_id), e.institute, e.degree, e.field_of_study, e.gpa, e.year_of_completion),
                )

    def list_emergency_contacts(self, user_id: int) -> Sequence[EmergencyContact]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT name1, relation1, contact_number1, name2, relation2, contact_number2
                FROM user_emergency_contacts WHERE user_id=%s ORDER BY id ASC
                """,
                (int(user_id),),
            )
            return [EmergencyContact(**r) for r in fetchall(cur)]

    def replace_emergency_contacts(self, user_id: int, items: Sequence[EmergencyContact]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_emergency_contacts WHERE user_id=%s", (int(user_id),))
            for c in items:
                cur.execute(
                    """
                    INSERT INTO user_emergency_contacts (user_id, name1, relation1, contact_number1,
                                                         name2, relation2, contact_number2)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    (int(user_id), c.name1, c.relation1, c.contact_number1, c.name2, c.relation2, c.contact_number2),
                )

    def get_bank_details(self, user_id: int) -> Optional[BankAccountDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT bank_name, branch_name, account_title, account_number, iban_number
                FROM user_bank_details WHERE user_id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return BankAccountDetails(**r) if r else None

    def save_bank_details(self, user_id: int, details: BankAccountDetails) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_bank_details (user_id, bank_name, branch_name, account_title, account_number, iban_number)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    bank_name=VALUES(bank_name), branch_name=VALUES(branch_name),
                    account_title=VALUES(account_title), account_number=VALUES(account_number),
                    iban_number=VALUES(iban_number)
                """,
                (
                    int(user_id),
                    details.bank_name,
                    details.branch_name,
                    details.account_title,
                    details.account_number,
                    details.iban_number,
                ),
            )

    def get_documents(self, user_id: int) -> dict[str, str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT doc_type, file_path FROM user_documents WHERE user_id=%s", (int(user_id),))
            return {r["doc_type"]: r["file_path"] for r in fetchall(cur)}

    def save_document(self, user_id: int, doc_type: str, path: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_documents (user_id, doc_type, file_path) VALUES (%s, %s, %s)
                ON DUPLICATE KEY UPDATE file_path=VALUES(file_path), uploaded_at=NOW()
                """,
                (int(user_id), doc_type, path),
            )
