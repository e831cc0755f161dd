from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import BankAccountDetails, ContactDetails, Education, EmergencyContact, PersonalDetails, SalaryDetails, User


class UserRepository(Protocol):
    """Storage interface for employees and their profile sections.

    Services depend on this protocol only; each profile section is saved on its own.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self, *, active_only: bool = False) -> Sequence[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_personal_details(self, user_id: int, details: PersonalDetails) -> bool:
        raise NotImplementedError

    def update_salary_details(self, user_id: int, salary: SalaryDetails) -> bool:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def update_password(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def set_manager(self, user_id: int, manager_id: Optional[int]) -> bool:
        raise NotImplementedError

    def set_profile_picture(self, user_id: int, path: str) -> bool:
        raise NotImplementedError

    def set_resume(self, user_id: int, path: str) -> bool:
        raise NotImplementedError

    def get_contact_details(self, user_id: int) -> Optional[ContactDetails]:
        raise NotImplementedError

    def save_contact_details(self, user_id: int, details: ContactDetails) -> None:
        raise NotImplementedError

    def list_education(self, user_id: int) -> Sequence[Education]:
        raise NotImplementedError

    def replace_education(self, user_id: int, items: Sequence[Education]) -> None:
        raise NotImplementedError

    def list_emergency_contacts(self, user_id: int) -> Sequence[EmergencyContact]:
        raise NotImplementedError

    def replace_emergency_contacts(self, user_id: int, items: Sequence[EmergencyContact]) -> None:
        raise NotImplementedError

    def get_bank_details(self, user_id: int) -> Optional[BankAccountDetails]:
        raise NotImplementedError

    def save_bank_details(self, user_id: int, details: BankAccountDetails) -> None:
        raise NotImplementedError

    def get_documents(self, user_id: int) -> dict[str, str]:
        raise NotImplementedError

    def save_document(self, user_id: int, doc_type: str, path: str) -> None:
        raise NotImplementedError
