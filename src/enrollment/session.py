"""Session tracking for the enrollment client.

SessionStore holds the identity reported by the most recent GET /me. It is
passed explicitly to SessionManager (its only writer) and ActionController,
which must call SessionManager.refresh() before trusting it for a gated action.
"""

from dataclasses import dataclass

from src.enrollment.api import ApiResponse, EnrollmentAPI
from src.enrollment.banner import NotificationBanner
from src.enrollment.errors import (
    MalformedResponseError,
    SessionRequiredError,
    TransportError,
)
from src.enrollment.logging import get_logger
from src.enrollment.models import Message, Session

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a user-initiated action, as reported on the banner."""

    ok: bool
    message: Message | None = None
    status: int | None = None


class SessionStore:
    """Explicit holder of the current Session value."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session or Session.anonymous()

    @property
    def current(self) -> Session:
        return self._session

    def update(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = Session.anonymous()

    def require_session(self) -> Session:
        """Return the current session, or raise if it is anonymous.

        Raises:
            SessionRequiredError: If no visitor is logged in.
        """
        if not self._session.is_authenticated:
            raise SessionRequiredError("No authenticated session")
        return self._session


@dataclass
class IdentityPanel:
    """Visible identity indicator and the login/register/logout controls."""

    user_info: str = ""
    user_info_visible: bool = False
    logout_visible: bool = False
    login_form_visible: bool = True
    register_form_visible: bool = True

    def show_session(self, session: Session) -> None:
        signed_in = session.is_authenticated
        self.user_info = f"Logged in as: {session.username}" if signed_in else ""
        self.user_info_visible = signed_in
        self.logout_visible = signed_in
        self.login_form_visible = not signed_in
        self.register_form_visible = not signed_in


class SessionManager:
    """Queries the server for the visitor's identity and runs auth actions.

    Args:
        api: Enrollment API transport.
        store: Session store shared with the ActionController.
        banner: Banner used to report login/register/logout outcomes.
    """

    def __init__(
        self,
        api: EnrollmentAPI,
        store: SessionStore,
        banner: NotificationBanner,
        panel: IdentityPanel | None = None,
    ) -> None:
        self.api = api
        self.store = store
        self.banner = banner
        self.panel = panel or IdentityPanel()

    def _apply(self, session: Session) -> Session:
        self.store.update(session)
        self.panel.show_session(session)
        return session

    async def refresh(self) -> Session:
        """Ask the server who is logged in.

        Never raises: a non-success status, an unreachable server or an
        unreadable body all count as "no session".

        Returns:
            The session now held by the store.
        """
        try:
            response = await self.api.current_user()
        except (TransportError, MalformedResponseError) as e:
            logger.warning("session_refresh_failed", error=str(e), type=type(e).__name__)
            return self._apply(Session.anonymous())

        username = response.field("username") if response.ok else None
        session = Session(username=username)
        logger.debug(
            "session_refreshed",
            status=response.status,
            authenticated=session.is_authenticated,
        )
        return self._apply(session)

    def _report(self, response: ApiResponse, fallback: str) -> ActionResult:
        if response.ok:
            message = self.banner.success(response.field("message") or "")
        else:
            message = self.banner.error(response.field("detail") or fallback)
        return ActionResult(ok=response.ok, message=message, status=response.status)

    async def login(self, username: str, password: str) -> ActionResult:
        """Submit credentials; on success re-query the session."""
        try:
            response = await self.api.login(username, password)
        except (TransportError, MalformedResponseError) as e:
            logger.warning("login_error", username=username, error=str(e))
            return ActionResult(ok=False, message=self.banner.error("Login error."))

        result = self._report(response, "Login failed")
        logger.info("login_finished", username=username, status=response.status)
        if result.ok:
            await self.refresh()
        return result

    async def register(self, username: str, password: str) -> ActionResult:
        """Create an account. Does not log the new account in."""
        try:
            response = await self.api.register(username, password)
        except (TransportError, MalformedResponseError) as e:
            logger.warning("register_error", username=username, error=str(e))
            return ActionResult(
                ok=False, message=self.banner.error("Registration error.")
            )

        logger.info("register_finished", username=username, status=response.status)
        return self._report(response, "Registration failed")

    async def logout(self) -> ActionResult:
        """End the server session and revert to the anonymous view."""
        try:
            response = await self.api.logout()
        except TransportError as e:
            logger.warning("logout_error", error=str(e))
            return ActionResult(ok=False, message=self.banner.error("Logout error."))

        logger.info("logout_finished", status=response.status)
        if not response.ok:
            message = self.banner.error("Logout failed.")
            return ActionResult(ok=False, message=message, status=response.status)

        message = self.banner.success("Logged out.")
        self.store.clear()
        self.panel.show_session(self.store.current)
        return ActionResult(ok=True, message=message, status=response.status)
