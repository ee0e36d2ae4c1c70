"""Pydantic schemas for request/response validation.

Wire format uses camelCase keys (``createdAt``, ``projectId``); Python code
uses snake_case attribute names. Both spellings are accepted on input.
"""
from typing import ClassVar, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import AuthProvider, Context, ProjectStatus, SomedayCategory, REVIEW_STEP_COUNT


class WireModel(BaseModel):
    """Base for every schema exchanged over HTTP."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


def _require_text(value: Optional[str]) -> Optional[str]:
    # Presence check only: blank strings count as missing
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


class PatchModel(WireModel):
    """Base for partial updates: unknown fields are rejected, not merged."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="forbid",
    )

    # Fields that may be explicitly cleared with null
    nullable_fields: ClassVar[frozenset] = frozenset()

    @model_validator(mode="after")
    def reject_null_for_required_fields(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None and name not in self.nullable_fields:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly supplied by the caller, keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# ============================================================================
# Envelopes
# ============================================================================

T = TypeVar("T")


class ItemEnvelope(BaseModel, Generic[T]):
    """Single record response: ``{"item": {...}}``."""

    item: T


class ItemListEnvelope(BaseModel, Generic[T]):
    """Collection response: ``{"items": [...]}``."""

    items: list[T]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


# ============================================================================
# User / Auth Schemas
# ============================================================================

class UserResponse(WireModel):
    """Public view of a user (never includes the password hash)."""

    id: str
    email: str
    name: str
    avatar: Optional[str] = None
    auth_provider: AuthProvider


class RegisterRequest(WireModel):
    """Schema for registering with email and password."""

    email: str
    password: str
    name: str

    check_text = field_validator("email", "password", "name")(_require_text)


class LoginRequest(WireModel):
    """Schema for email/password login."""

    email: str
    password: str

    check_text = field_validator("email", "password")(_require_text)


class GoogleLoginRequest(WireModel):
    """Schema for exchanging a Google authorization code."""

    code: str
    redirect_uri: Optional[str] = None

    check_text = field_validator("code")(_require_text)


class AuthResponse(BaseModel):
    """Token plus the authenticated user."""

    message: str
    token: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    """Response of /me."""

    user: UserResponse


# ============================================================================
# Inbox Schemas
# ============================================================================

class InboxItemCreate(WireModel):
    """Schema for capturing a new inbox item."""

    content: str

    check_text = field_validator("content")(_require_text)


class InboxItemPatch(PatchModel):
    """Mutable inbox item fields."""

    content: Optional[str] = None
    processed: Optional[bool] = None

    check_text = field_validator("content")(_require_text)


class InboxItemResponse(WireModel):
    """Schema for inbox item responses."""

    id: str
    content: str
    processed: bool = False
    created_at: int


# ============================================================================
# Project Schemas
# ============================================================================

class ProjectCreate(WireModel):
    """Schema for creating a new project."""

    name: str
    description: str = ""

    check_text = field_validator("name")(_require_text)


class ProjectPatch(PatchModel):
    """Mutable project fields."""

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None

    check_text = field_validator("name")(_require_text)


class ProjectResponse(WireModel):
    """Schema for project responses."""

    id: str
    name: str
    description: str = ""
    status: ProjectStatus
    created_at: int


# ============================================================================
# Action Schemas
# ============================================================================

class ActionCreate(WireModel):
    """Schema for creating a next action."""

    content: str
    context: Context = Context.ANYWHERE
    project_id: Optional[str] = None
    due_date: Optional[int] = None

    check_text = field_validator("content")(_require_text)


class ActionPatch(PatchModel):
    """Mutable action fields."""

    nullable_fields: ClassVar[frozenset] = frozenset({"project_id", "due_date"})

    content: Optional[str] = None
    context: Optional[Context] = None
    project_id: Optional[str] = None
    due_date: Optional[int] = None
    completed: Optional[bool] = None

    check_text = field_validator("content")(_require_text)


class ActionResponse(WireModel):
    """Schema for action responses."""

    id: str
    content: str
    project_id: Optional[str] = None
    context: Context
    due_date: Optional[int] = None
    completed: bool = False
    created_at: int


# ============================================================================
# Waiting For Schemas
# ============================================================================

class WaitingForCreate(WireModel):
    """Schema for delegating an item."""

    content: str
    person: str
    project_id: Optional[str] = None
    expected_date: Optional[int] = None

    check_text = field_validator("content", "person")(_require_text)


class WaitingForPatch(PatchModel):
    """Mutable waiting-for fields."""

    nullable_fields: ClassVar[frozenset] = frozenset({"project_id", "expected_date"})

    content: Optional[str] = None
    person: Optional[str] = None
    project_id: Optional[str] = None
    expected_date: Optional[int] = None
    completed: Optional[bool] = None

    check_text = field_validator("content", "person")(_require_text)


class WaitingForResponse(WireModel):
    """Schema for waiting-for responses."""

    id: str
    content: str
    person: str
    project_id: Optional[str] = None
    expected_date: Optional[int] = None
    completed: bool = False
    created_at: int


# ============================================================================
# Someday/Maybe Schemas
# ============================================================================

class SomedayMaybeCreate(WireModel):
    """Schema for parking an idea."""

    content: str
    category: SomedayCategory = SomedayCategory.OTHER

    check_text = field_validator("content")(_require_text)


class SomedayMaybePatch(PatchModel):
    """Mutable someday/maybe fields."""

    content: Optional[str] = None
    category: Optional[SomedayCategory] = None

    check_text = field_validator("content")(_require_text)


class SomedayMaybeResponse(WireModel):
    """Schema for someday/maybe responses."""

    id: str
    content: str
    category: SomedayCategory
    created_at: int


# ============================================================================
# Review Schemas
# ============================================================================

class ReviewPatch(PatchModel):
    """Review fields accepted by PUT /api/review."""

    nullable_fields: ClassVar[frozenset] = frozenset({"last_review_date"})

    last_review_date: Optional[int] = None
    current_step: Optional[int] = Field(None, ge=0, le=REVIEW_STEP_COUNT)
    completed_steps: Optional[list[bool]] = Field(
        None, min_length=REVIEW_STEP_COUNT, max_length=REVIEW_STEP_COUNT
    )


class ReviewResponse(WireModel):
    """Schema for review progress."""

    last_review_date: Optional[int] = None
    current_step: int = 0
    completed_steps: list[bool]


class ReviewEnvelope(BaseModel):
    """Review response: ``{"review": {...}}``."""

    review: ReviewResponse


class ReviewStepsResponse(BaseModel):
    """Titles of the weekly review steps, in order."""

    steps: list[str]
