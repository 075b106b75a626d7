"""ActionController - session-gated signup/unregister and page start-up.

Each gated action runs:

    IDLE -> SESSION_CHECKING -> DENIED
                             -> SUBMITTING -> SUCCEEDED | FAILED -> IDLE

The session check always finishes (and updates the identity panel) before
the mutating request is sent. A successful mutation triggers exactly one
roster refresh; denied and failed ones trigger none.

The decisions are pure functions (plan_gated_action, interpret_response);
ActionController only performs the I/O around them.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum

from src.enrollment.api import ApiResponse, EnrollmentAPI
from src.enrollment.banner import NotificationBanner
from src.enrollment.config import ClientConfig
from src.enrollment.errors import (
    MalformedResponseError,
    SessionRequiredError,
    TransportError,
)
from src.enrollment.logging import action_context, get_logger
from src.enrollment.models import MessageKind, Session
from src.enrollment.roster import RemoveControl, RosterView
from src.enrollment.session import ActionResult, SessionManager, SessionStore

log = get_logger(__name__)

GENERIC_REJECTION = "An error occurred"


class ActionState(str, Enum):
    IDLE = "idle"
    SESSION_CHECKING = "session_checking"
    DENIED = "denied"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ActionKind(str, Enum):
    SIGNUP = "signup"
    UNREGISTER = "unregister"

    @property
    def denied_text(self) -> str:
        verb = "sign up" if self is ActionKind.SIGNUP else "unregister"
        return f"Please log in to {verb}."

    @property
    def transport_text(self) -> str:
        verb = "sign up" if self is ActionKind.SIGNUP else "unregister"
        return f"Failed to {verb}. Please try again."


@dataclass(frozen=True)
class PlannedRequest:
    kind: ActionKind
    activity: str
    email: str


@dataclass(frozen=True)
class Denial:
    text: str


@dataclass(frozen=True)
class Outcome:
    """What to show after a response, and whether the roster must be re-fetched."""

    text: str
    kind: MessageKind
    refresh_roster: bool


def plan_gated_action(
    kind: ActionKind, session: Session, activity: str, email: str
) -> PlannedRequest | Denial:
    """Decide whether a gated action may be submitted for this session."""
    if not session.is_authenticated:
        return Denial(kind.denied_text)
    return PlannedRequest(kind=kind, activity=activity, email=email)


def interpret_response(kind: ActionKind, response: ApiResponse | None) -> Outcome:
    """Map a mutation response (None = no usable response) to an outcome."""
    if response is None:
        return Outcome(kind.transport_text, MessageKind.ERROR, refresh_roster=False)
    if response.ok:
        return Outcome(
            response.field("message") or "", MessageKind.SUCCESS, refresh_roster=True
        )
    return Outcome(
        response.field("detail") or GENERIC_REJECTION,
        MessageKind.ERROR,
        refresh_roster=False,
    )


@dataclass(frozen=True)
class GatedActionResult(ActionResult):
    state: ActionState = ActionState.IDLE


class ActionController:
    """Wires the session gate, the API, the banner and the roster together."""

    def __init__(
        self,
        api: EnrollmentAPI,
        store: SessionStore,
        sessions: SessionManager,
        roster: RosterView,
        banner: NotificationBanner,
    ) -> None:
        self.api = api
        self.store = store
        self.sessions = sessions
        self.roster = roster
        self.banner = banner
        self.state = ActionState.IDLE

    @classmethod
    def from_config(
        cls, api: EnrollmentAPI, config: ClientConfig, **banner_kwargs
    ) -> "ActionController":
        """Build the full component graph for one page."""
        store = SessionStore()
        banner = NotificationBanner(
            hide_delay=config.message_hide_delay,
            legacy_races=config.legacy_races,
            **banner_kwargs,
        )
        sessions = SessionManager(api, store, banner)
        roster = RosterView(api, legacy_races=config.legacy_races)
        return cls(api, store, sessions, roster, banner)

    def _enter(self, state: ActionState) -> None:
        self.state = state
        log.debug("action_state", state=state.value)

    async def start(self) -> None:
        """Initial roster population and identity probe."""
        await asyncio.gather(self.roster.refresh(), self.sessions.refresh())

    async def _send(self, request: PlannedRequest) -> ApiResponse:
        if request.kind is ActionKind.SIGNUP:
            return await self.api.signup(request.activity, request.email)
        return await self.api.unregister(request.activity, request.email)

    async def _run(
        self, kind: ActionKind, activity: str, email: str
    ) -> GatedActionResult:
        with action_context(kind.value, activity):
            self._enter(ActionState.SESSION_CHECKING)
            session = await self.sessions.refresh()

            plan = plan_gated_action(kind, session, activity, email)
            if isinstance(plan, Denial):
                self._enter(ActionState.DENIED)
                log.info("gated_action_denied")
                message = self.banner.error(plan.text)
                self._enter(ActionState.IDLE)
                return GatedActionResult(
                    ok=False, message=message, state=ActionState.DENIED
                )

            self._enter(ActionState.SUBMITTING)
            response: ApiResponse | None
            try:
                response = await self._send(plan)
            except (TransportError, MalformedResponseError) as e:
                log.error("gated_action_error", error=str(e), type=type(e).__name__)
                response = None

            outcome = interpret_response(kind, response)
            status = response.status if response is not None else None
            final = (
                ActionState.SUCCEEDED if outcome.refresh_roster else ActionState.FAILED
            )
            self._enter(final)
            log.info("gated_action_finished", state=final.value, status=status)

            message = self.banner.show(outcome.text, outcome.kind)
            if outcome.refresh_roster:
                if kind is ActionKind.SIGNUP:
                    self.roster.form.reset()
                await self.roster.refresh()

            self._enter(ActionState.IDLE)
            return GatedActionResult(
                ok=outcome.refresh_roster, message=message, status=status, state=final
            )

    async def signup(self, activity: str, email: str) -> GatedActionResult:
        """Enroll an email in an activity, gated on a live session."""
        return await self._run(ActionKind.SIGNUP, activity, email)

    async def unregister(self, activity: str, email: str) -> GatedActionResult:
        """Withdraw an email from an activity, gated on a live session."""
        return await self._run(ActionKind.UNREGISTER, activity, email)

    async def submit_signup(self) -> GatedActionResult:
        """Submit the roster's signup form."""
        form = self.roster.form
        return await self.signup(form.activity, form.email)

    async def remove(self, control: RemoveControl) -> GatedActionResult:
        """Dispatch a participant row's removal control."""
        return await self.unregister(control.activity, control.email)

    def require_session(self) -> Session:
        """Cached session check for callers that already refreshed.

        Raises:
            SessionRequiredError: If the last refresh found no session.
        """
        try:
            return self.store.require_session()
        except SessionRequiredError:
            log.debug("session_required", state=self.state.value)
            raise
