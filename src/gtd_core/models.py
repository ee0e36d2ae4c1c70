"""SQLAlchemy database models."""
from uuid import uuid4
import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    BigInteger,
    Boolean,
    Enum,
    JSON,
    Index,
    CheckConstraint,
)
from sqlalchemy.ext.declarative import declarative_base

from .timeutil import now_ms

# Base class for all models
Base = declarative_base()

REVIEW_STEP_COUNT = 7


def generate_id() -> str:
    """Opaque string identifier for new records."""
    return uuid4().hex


def _enum_values(enum_cls):
    # Persist enum values ("on-hold", "@home") rather than member names
    return [member.value for member in enum_cls]


class AuthProvider(str, enum.Enum):
    """How a user authenticates."""

    LOCAL = "local"
    GOOGLE = "google"


class Context(str, enum.Enum):
    """Situational tag used to filter next actions."""

    HOME = "@home"
    OFFICE = "@office"
    PHONE = "@phone"
    COMPUTER = "@computer"
    ERRANDS = "@errands"
    ANYWHERE = "@anywhere"


class ProjectStatus(str, enum.Enum):
    """Project status enum."""

    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"


class SomedayCategory(str, enum.Enum):
    """Category for deferred someday/maybe ideas."""

    PERSONAL = "personal"
    WORK = "work"
    HOBBY = "hobby"
    LEARNING = "learning"
    OTHER = "other"


DEFAULT_CONTEXT = Context.ANYWHERE


class User(Base):
    """Account owning every other record."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # Null for accounts that only sign in through SSO
    password_hash = Column(String(255), nullable=True)
    sso_id = Column(String(255), unique=True, nullable=True, index=True)
    avatar = Column(Text, nullable=True)
    auth_provider = Column(
        Enum(AuthProvider, values_callable=_enum_values, name="authprovider"),
        nullable=False,
        default=AuthProvider.LOCAL,
    )
    created_at = Column(BigInteger, nullable=False, default=now_ms)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class InboxItem(Base):
    """Captured thought awaiting clarification."""

    __tablename__ = "inbox_items"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    content = Column(Text, nullable=False)
    processed = Column(Boolean, nullable=False, default=False)
    created_at = Column(BigInteger, nullable=False, default=now_ms)

    __table_args__ = (
        Index("idx_inbox_items_user_created", "user_id", "created_at"),
    )


class Project(Base):
    """Multi-step outcome grouping actions and waiting-for items."""

    __tablename__ = "projects"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(
        Enum(ProjectStatus, values_callable=_enum_values, name="projectstatus"),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )
    created_at = Column(BigInteger, nullable=False, default=now_ms)

    __table_args__ = (
        Index("idx_projects_user_created", "user_id", "created_at"),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', status={self.status})>"


class Action(Base):
    """Next action. project_id is a soft reference nulled when the project goes away."""

    __tablename__ = "actions"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    content = Column(Text, nullable=False)
    project_id = Column(String(32), nullable=True, index=True)
    context = Column(
        Enum(Context, values_callable=_enum_values, name="actioncontext"),
        nullable=False,
        default=DEFAULT_CONTEXT,
    )
    due_date = Column(BigInteger, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(BigInteger, nullable=False, default=now_ms)

    __table_args__ = (
        Index("idx_actions_user_created", "user_id", "created_at"),
    )


class WaitingFor(Base):
    """Item delegated to another person."""

    __tablename__ = "waiting_for"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    content = Column(Text, nullable=False)
    person = Column(String(255), nullable=False)
    project_id = Column(String(32), nullable=True, index=True)
    expected_date = Column(BigInteger, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(BigInteger, nullable=False, default=now_ms)

    __table_args__ = (
        Index("idx_waiting_for_user_created", "user_id", "created_at"),
    )


class SomedayMaybe(Base):
    """Deferred idea not yet committed to."""

    __tablename__ = "someday_maybe"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    content = Column(Text, nullable=False)
    category = Column(
        Enum(SomedayCategory, values_callable=_enum_values, name="somedaycategory"),
        nullable=False,
        default=SomedayCategory.OTHER,
    )
    created_at = Column(BigInteger, nullable=False, default=now_ms)

    __table_args__ = (
        Index("idx_someday_maybe_user_created", "user_id", "created_at"),
    )


class ReviewProgress(Base):
    """Weekly review state. Exactly one row per user."""

    __tablename__ = "review_progress"

    user_id = Column(String(32), primary_key=True)
    last_review_date = Column(BigInteger, nullable=True)
    current_step = Column(Integer, nullable=False, default=0)
    completed_steps = Column(
        JSON,
        nullable=False,
        default=lambda: [False] * REVIEW_STEP_COUNT,
    )

    __table_args__ = (
        CheckConstraint(
            f"current_step >= 0 AND current_step <= {REVIEW_STEP_COUNT}",
            name="valid_current_step",
        ),
    )
