from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PayrollRecord


class PayrollRepository(Protocol):
    def create(self, record: PayrollRecord) -> int:
        """Insert the record; its id is ignored and the new one returned."""

        raise NotImplementedError

    def get(self, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def find(self, user_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def list_all(self, *, month: Optional[int] = None, year: Optional[int] = None) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def update(self, record: PayrollRecord) -> bool:
        raise NotImplementedError

    def delete(self, payroll_id: int) -> bool:
        raise NotImplementedError
