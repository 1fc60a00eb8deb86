import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import DuplicateEmail, DuplicateStaffId
from ..core.security import UserRole
from ..models.user import Staff, User
from .base import Page, UserRepository

logger = logging.getLogger(__name__)


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, record_id):
        return self.db.query(User).options(joinedload(User.staff)).filter(User.id == record_id).first()

    def get_by_email(self, email):
        return self.db.query(User).options(joinedload(User.staff)).filter(User.email == email).first()

    def get_doctor(self, user_id):
        return self.db.query(User).filter(
            User.id == user_id,
            User.role == UserRole.DOCTOR,
            User.is_active == True  # noqa: E712
        ).first()

    def list(self, skip=0, limit=10, role=None, department=None, active_only=False):
        query = self.db.query(User).options(joinedload(User.staff))

        if role is not None:
            query = query.filter(User.role == role)
        if department:
            query = query.join(User.staff).filter(Staff.department.ilike(department))
        if active_only:
            query = query.filter(User.is_active == True)  # noqa: E712

        total = query.count()
        users = query.order_by(User.id).offset(skip).limit(limit).all()
        return Page(users, total)

    def _commit(self, record):
        email = record.email
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig)
            logger.warning(f"User write rejected for {email}: {message}")
            if "staff_id" in message:
                raise DuplicateStaffId()
            if "email" in message:
                raise DuplicateEmail()
            raise
        self.db.refresh(record)
        return record

    def add(self, record):
        self.db.add(record)
        return self._commit(record)

    def update(self, record, data):
        for field, value in data.items():
            setattr(record, field, value)
        return self._commit(record)
