"""GTD Client - session-scoped cache and workflows over the GTD Core API.

Modules:
- api: async HTTP client for the REST API
- session: persisted authentication session
- store: in-memory mirror of the user's collections
- views: derived, filtered and grouped views over a store
- workflow: inbox processing decision tree
- review: weekly review sequencer
"""

__version__ = "1.0.0"

from .api import ApiError, GTDApiClient
from .session import AuthSession
from .store import GTDStore
from .workflow import InboxProcessor, ProcessStep, WorkflowTransitionError
from .review import WeeklyReview

__all__ = [
    "ApiError",
    "GTDApiClient",
    "AuthSession",
    "GTDStore",
    "InboxProcessor",
    "ProcessStep",
    "WorkflowTransitionError",
    "WeeklyReview",
    "__version__",
]
