"""NotificationBanner - the single transient message slot.

A shown message stays visible for a fixed delay and is then hidden. By
default the banner owns one hide timer: showing a new message cancels the
previous message's timer. With legacy_races=True every show() schedules an
independent timer, so a timer left over from an older message can hide a
newer one early.
"""

import asyncio
from typing import Callable, Protocol

from src.enrollment.logging import get_logger
from src.enrollment.models import Message, MessageKind

log = get_logger(__name__)

DEFAULT_HIDE_DELAY = 5.0


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def _loop_call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class NotificationBanner:
    """Transient success/error banner with auto-hide."""

    def __init__(
        self,
        *,
        hide_delay: float = DEFAULT_HIDE_DELAY,
        legacy_races: bool = False,
        call_later: Scheduler | None = None,
    ) -> None:
        self.hide_delay = hide_delay
        self.legacy_races = legacy_races
        self._call_later = call_later or _loop_call_later
        self._message: Message | None = None
        self._timer: TimerHandle | None = None

    @property
    def message(self) -> Message | None:
        return self._message

    @property
    def visible(self) -> bool:
        return self._message is not None and self._message.visible

    @property
    def text(self) -> str:
        return self._message.text if self._message else ""

    @property
    def kind(self) -> MessageKind | None:
        return self._message.kind if self._message else None

    def show(self, text: str, kind: MessageKind) -> Message:
        """Replace the slot's content, make it visible and schedule hiding.

        Args:
            text: Message text.
            kind: SUCCESS or ERROR.

        Returns:
            The message now occupying the slot.
        """
        if self._timer is not None and not self.legacy_races:
            self._timer.cancel()

        self._message = Message(text=text, kind=kind, visible=True)
        self._timer = self._call_later(self.hide_delay, self.hide)

        log.info("message_shown", kind=kind.value, text=text)
        return self._message

    def success(self, text: str) -> Message:
        return self.show(text, MessageKind.SUCCESS)

    def error(self, text: str) -> Message:
        return self.show(text, MessageKind.ERROR)

    def hide(self) -> None:
        """Hide whatever message currently occupies the slot."""
        if self._message is None or not self._message.visible:
            return
        self._message = self._message.model_copy(update={"visible": False})
        log.debug("message_hidden", text=self._message.text)
