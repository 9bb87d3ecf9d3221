"""Users and parent-student relationships"""

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, SchoolScopedMixin, StatusMixin, pg_enum
from app.models.enums import UserRole


class User(BaseModel, SchoolScopedMixin, StatusMixin):
    """
    Unified user model for all roles (student, parent, school admin).
    Credentials live with the identity provider; the id is the token subject.
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    student_number = Column(String(20), nullable=True)
    role = Column(pg_enum(UserRole, "user_role"), nullable=False, index=True)

    school = relationship("School", back_populates="users")
    wallet = relationship("WalletProfile", back_populates="student", uselist=False)

    @property
    def full_name(self) -> str:
        """Get user's full name"""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.SCHOOL_ADMIN

    @property
    def is_parent(self) -> bool:
        return self.role == UserRole.PARENT

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class ParentStudentLink(BaseModel, SchoolScopedMixin, StatusMixin):
    """
    Guardian relationship between a parent and a student in one school.
    Deposits and alerts require an active link.
    """
    __tablename__ = "parent_student_links"
    __table_args__ = (
        UniqueConstraint("parent_user_id", "student_id", "school_id", name="uq_parent_student_school"),
    )

    parent_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    parent = relationship("User", foreign_keys=[parent_user_id])
    student = relationship("User", foreign_keys=[student_id])

    def __repr__(self) -> str:
        return f"<ParentStudentLink {self.parent_user_id} -> {self.student_id}>"
