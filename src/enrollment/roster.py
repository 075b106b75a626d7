"""RosterView - activity list, participant rosters and the signup form.

The view is never patched: build_roster() turns an activity snapshot into an
immutable view tree and render() swaps the whole tree in. refresh() fetches
GET /activities and renders the result, or the failure notice.

Refresh ordering: each refresh takes a sequence number when it starts. A
response that finishes after a newer one has already been applied is
dropped. With legacy_races=True no guard is applied and the last response
to arrive wins, even if it was requested first.
"""

from dataclasses import dataclass

from src.enrollment.api import EnrollmentAPI
from src.enrollment.errors import MalformedResponseError, TransportError
from src.enrollment.logging import get_logger
from src.enrollment.models import Activity, parse_activities

log = get_logger(__name__)

LOAD_FAILURE_NOTICE = "Failed to load activities. Please try again later."
NO_PARTICIPANTS_NOTICE = "No participants yet"


@dataclass(frozen=True)
class RemoveControl:
    """Removal button bound to one participant row."""

    activity: str
    email: str


@dataclass(frozen=True)
class ParticipantRow:
    email: str
    remove: RemoveControl


@dataclass(frozen=True)
class ActivityCard:
    name: str
    description: str
    schedule: str
    spots_left: int
    participants: tuple[ParticipantRow, ...]

    @property
    def availability(self) -> str:
        return f"{self.spots_left} spots left"


@dataclass(frozen=True)
class RosterSnapshot:
    """Full view tree: activity cards plus the activity selection options."""

    cards: tuple[ActivityCard, ...] = ()
    options: tuple[str, ...] = ()
    failure: str | None = None

    def card(self, name: str) -> ActivityCard:
        for card in self.cards:
            if card.name == name:
                return card
        raise KeyError(name)


def build_roster(activities: tuple[Activity, ...] | list[Activity]) -> RosterSnapshot:
    """Build the view tree for an activity snapshot. Pure function."""
    cards = tuple(
        ActivityCard(
            name=activity.name,
            description=activity.description,
            schedule=activity.schedule,
            spots_left=activity.spots_left,
            participants=tuple(
                ParticipantRow(email=email, remove=RemoveControl(activity.name, email))
                for email in activity.participants
            ),
        )
        for activity in activities
    )
    return RosterSnapshot(cards=cards, options=tuple(card.name for card in cards))


@dataclass
class SignupForm:
    """Email field and activity selector of the signup form."""

    email: str = ""
    activity: str = ""

    def reset(self) -> None:
        self.email = ""
        self.activity = ""


class RosterView:
    """Owns the displayed roster and the signup form.

    Args:
        api: Enrollment API transport used by refresh().
        legacy_races: Apply responses in arrival order instead of request order.
    """

    def __init__(self, api: EnrollmentAPI, *, legacy_races: bool = False) -> None:
        self.api = api
        self.legacy_races = legacy_races
        self.snapshot = RosterSnapshot()
        self.form = SignupForm()
        self._issued = 0
        self._applied = 0

    def render(self, activities: tuple[Activity, ...] | list[Activity]) -> RosterSnapshot:
        """Rebuild the roster display from scratch."""
        self.snapshot = build_roster(activities)
        log.debug("roster_rendered", activities=len(self.snapshot.cards))
        return self.snapshot

    def render_failure(self) -> RosterSnapshot:
        """Replace the roster with the static load-failure notice."""
        self.snapshot = RosterSnapshot(
            options=self.snapshot.options, failure=LOAD_FAILURE_NOTICE
        )
        return self.snapshot

    def _is_stale(self, seq: int) -> bool:
        if self.legacy_races:
            return False
        if seq < self._applied:
            log.info("roster_refresh_stale", seq=seq, applied=self._applied)
            return True
        self._applied = seq
        return False

    async def refresh(self) -> RosterSnapshot:
        """Fetch the full activity collection and redraw it.

        Returns:
            The snapshot on display once this refresh has finished.
        """
        self._issued += 1
        seq = self._issued

        activities: tuple[Activity, ...] | None = None
        try:
            response = await self.api.list_activities()
            if response.ok:
                activities = parse_activities(response.payload)
            else:
                log.error("roster_refresh_rejected", seq=seq, status=response.status)
        except (TransportError, MalformedResponseError) as e:
            log.error("roster_refresh_failed", seq=seq, error=str(e))

        if self._is_stale(seq):
            return self.snapshot
        if activities is None:
            return self.render_failure()
        log.info("roster_refreshed", seq=seq, activities=len(activities))
        return self.render(activities)

    def as_text(self) -> str:
        """Plain-text rendering of the current view tree."""
        if self.snapshot.failure:
            return self.snapshot.failure

        blocks = []
        for card in self.snapshot.cards:
            lines = [
                card.name,
                f"  {card.description}",
                f"  Schedule: {card.schedule}",
                f"  Availability: {card.availability}",
            ]
            if card.participants:
                lines.append("  Participants:")
                lines.extend(f"    - {row.email}" for row in card.participants)
            else:
                lines.append(f"  {NO_PARTICIPANTS_NOTICE}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)
