"""
User directory entry with role and hierarchy data.

``manager_id`` is a back-reference resolved through the user repository when
needed; a manager's record is never embedded in the employee.
"""
from sqlalchemy import Column, String, Enum, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
import enum
from perf_reviews.database import Base


class UserRole(str, enum.Enum):
    """
    Roles recognised by the review workflows.

    - ADMIN: platform administration, approves score adjustments
    - HR: people operations, runs cycles and calibration
    - MANAGER: authors evaluations for direct reports
    - EMPLOYEE: self-service access
    """
    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"


ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.HR})


class EngineerLevel(str, enum.Enum):
    JUNIOR = "JUNIOR"
    MID = "MID"
    SENIOR = "SENIOR"
    LEAD = "LEAD"
    MANAGER = "MANAGER"


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)

    roles = Column(JSON, nullable=False, default=lambda: [UserRole.EMPLOYEE.value])
    level = Column(Enum(EngineerLevel), nullable=True)
    manager_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    department = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User {self.email} ({','.join(self.roles or [])})>"

    def has_role(self, role: UserRole) -> bool:
        return role.value in (self.roles or [])
