"""Activity enrollment client.

Session-gated signup/unregister against the enrollment REST API, with a
roster view that is rebuilt from a fresh fetch after every change.
"""

from src.enrollment.api import ApiResponse, EnrollmentAPI
from src.enrollment.banner import NotificationBanner
from src.enrollment.controller import ActionController, ActionState
from src.enrollment.models import Activity, Message, MessageKind, Session
from src.enrollment.roster import RosterView, build_roster
from src.enrollment.session import SessionManager, SessionStore

__all__ = [
    "ActionController",
    "ActionState",
    "Activity",
    "ApiResponse",
    "EnrollmentAPI",
    "Message",
    "MessageKind",
    "NotificationBanner",
    "RosterView",
    "Session",
    "SessionManager",
    "SessionStore",
    "build_roster",
]
