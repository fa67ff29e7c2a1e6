"""Session state module for switchclaw."""

from switchclaw.session.store import MAIN_SESSION_KEY, SessionEntry, SessionStore, resolve_session_key

__all__ = ["MAIN_SESSION_KEY", "SessionEntry", "SessionStore", "resolve_session_key"]
