"""
Data-access interfaces the services depend on.

The SQLAlchemy implementations live next to this module; tests substitute
in-memory fakes with the same methods.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")


class Page(Generic[T]):
    """A slice of rows plus the unpaginated total."""

    def __init__(self, items: List[T], total: int):
        self.items = items
        self.total = total

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)


class Repository(ABC, Generic[T]):

    @abstractmethod
    def get(self, record_id: int) -> Optional[T]:
        ...

    @abstractmethod
    def add(self, record: T) -> T:
        """Persist a new record and return it with generated fields populated."""

    @abstractmethod
    def update(self, record: T, data: Dict[str, Any]) -> T:
        """Apply ``data`` to ``record`` and persist it."""


class UserRepository(Repository):

    @abstractmethod
    def get_by_email(self, email: str):
        ...

    @abstractmethod
    def get_doctor(self, user_id: int):
        """Active user with the DOCTOR role, or None."""

    @abstractmethod
    def list(self, skip: int = 0, limit: int = 10, role=None, department: Optional[str] = None,
             active_only: bool = False) -> Page:
        ...


class PatientRepository(Repository):

    @abstractmethod
    def get_by_national_id(self, national_id: str):
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def list(self, skip: int = 0, limit: int = 10, search: Optional[str] = None) -> Page:
        """Active patients, newest first."""

    @abstractmethod
    def search(self, term: str, limit: int = 20) -> List:
        """Active patients matching ``term``, including on the NHIF number."""

    @abstractmethod
    def counts(self, since: date) -> Dict[str, int]:
        """``total``, ``active``, ``with_nhif`` (active only) and ``new`` (created on or after ``since``)."""


class AppointmentRepository(Repository):

    @abstractmethod
    def list(self, skip: int = 0, limit: int = 10, status=None, doctor_id: Optional[int] = None,
             patient_id: Optional[int] = None, day: Optional[date] = None) -> Page:
        """Filtered appointments ordered by date then time."""

    @abstractmethod
    def find_active(self, doctor_id: int, day: date, exclude_id: Optional[int] = None) -> List:
        """Appointments still holding a slot for the doctor on that day."""

    @abstractmethod
    def count(self, date_from: Optional[date] = None, date_to: Optional[date] = None,
              statuses: Optional[Iterable] = None) -> int:
        """Count appointments with ``date_from <= date < date_to`` and a status in ``statuses``."""
