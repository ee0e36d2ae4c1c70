"""API routers for GTD Core."""

from . import auth, inbox, projects, actions, waiting_for, someday_maybe, review

__all__ = ["auth", "inbox", "projects", "actions", "waiting_for", "someday_maybe", "review"]
