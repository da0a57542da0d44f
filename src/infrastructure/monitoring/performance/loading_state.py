"""
Observable loading state.

Tracks a single idle/loading/success/error indicator for the host UI and
notifies subscribers on every change. Success and error states reset to
idle on their own after a short delay.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

SUCCESS_RESET_DELAY = 2.0
ERROR_RESET_DELAY = 3.0


class LoadingPhase(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class LoadingState:
    phase: LoadingPhase = LoadingPhase.IDLE
    text: str = ""

    @property
    def is_loading(self) -> bool:
        return self.phase is LoadingPhase.LOADING


Listener = Callable[[LoadingState], None]


class LoadingStateManager:
    """Holds the current loading state and fans changes out to listeners."""

    def __init__(
        self,
        success_reset_delay: float = SUCCESS_RESET_DELAY,
        error_reset_delay: float = ERROR_RESET_DELAY,
    ) -> None:
        self.success_reset_delay = success_reset_delay
        self.error_reset_delay = error_reset_delay
        self._state = LoadingState()
        self._listeners: list[Listener] = []
        self._reset_handle: asyncio.TimerHandle | None = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_state(self) -> LoadingState:
        return self._state

    def set_state(self, phase: LoadingPhase | str, text: str = "") -> None:
        self._cancel_reset()
        self._state = LoadingState(LoadingPhase(phase), text)

        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"Loading state listener failed: {e}")

    def show_loading(self, text: str = "Loading...") -> None:
        self.set_state(LoadingPhase.LOADING, text)

    def hide_loading(self) -> None:
        self.set_state(LoadingPhase.IDLE)

    def show_success(self, text: str = "Done") -> None:
        self.set_state(LoadingPhase.SUCCESS, text)
        self._schedule_reset(self.success_reset_delay)

    def show_error(self, text: str = "Something went wrong") -> None:
        self.set_state(LoadingPhase.ERROR, text)
        self._schedule_reset(self.error_reset_delay)

    def close(self) -> None:
        self._cancel_reset()
        self._listeners.clear()

    def _schedule_reset(self, delay: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, loading state will not reset on its own")
            return
        self._reset_handle = loop.call_later(delay, self.hide_loading)

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
