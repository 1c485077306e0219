"""
Tweens: Animated Transitions Between View States.

A tween is a value describing one transition (start state, end state, start
time, duration, easing). It has no clock of its own: whoever owns it asks
for the state at a given time, which makes animations testable with virtual
time and makes cancellation a matter of replacing the value.

Times are in MILLISECONDS on whatever monotonic clock the host uses.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Union

from common.constants import InteractionConstants
from common.logging_config import get_logger
from viewport.view_state import ViewState, ease_cubic_in_out

logger = get_logger(__name__)

Easing = Callable[[float], float]
Clock = Callable[[], float]
FrameCallback = Callable[[ViewState], Union[None, Awaitable[None]]]


def monotonic_ms() -> float:
    """Default clock in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class Tween:
    """One animated transition between two view states of the same mode.

    Attributes
    ----------
    start_state, end_state : ViewState
        States at t = 0 and t = 1.
    start_ms : float
        Clock time at which the transition begins.
    duration_ms : float
        Length of the transition; zero settles immediately.
    easing : callable
        Maps linear progress in [0, 1] to eased progress.
    label : str
        Free-form tag for logging ('auto-fit', 'reset').
    """
    start_state: ViewState
    end_state: ViewState
    start_ms: float
    duration_ms: float
    easing: Easing = ease_cubic_in_out
    label: str = ""

    def __post_init__(self):
        if type(self.start_state) is not type(self.end_state):
            raise TypeError(
                f"Cannot tween {type(self.start_state).__name__} "
                f"into {type(self.end_state).__name__}"
            )
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be >= 0, got {self.duration_ms}")

    def progress(self, now_ms: float) -> float:
        """Linear progress in [0, 1]."""
        if self.duration_ms <= 0:
            return 1.0
        return min(max((now_ms - self.start_ms) / self.duration_ms, 0.0), 1.0)

    def is_done(self, now_ms: float) -> bool:
        return now_ms - self.start_ms >= self.duration_ms

    def state_at(self, now_ms: float) -> Tuple[ViewState, bool]:
        """Interpolated state and done flag at a clock time.

        Once elapsed ≥ duration the exact end state is returned, so rounding
        in the interpolation never leaves the view a hair off target.
        """
        if self.is_done(now_ms):
            return self.end_state, True
        eased = self.easing(self.progress(now_ms))
        return self.start_state.interpolate(self.end_state, eased), False


class TweenScheduler:
    """Holds at most one active tween and advances it on each tick.

    Starting a new tween replaces the one in flight, so two interpolations
    never fight over the same view state.
    """

    def __init__(self):
        self._active: Optional[Tween] = None

    @property
    def active(self) -> Optional[Tween]:
        return self._active

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def start(self, tween: Tween) -> None:
        if self._active is not None:
            logger.debug(f"Tween '{self._active.label}' replaced by '{tween.label}'")
        self._active = tween

    def cancel(self) -> Optional[Tween]:
        """Drop the active tween, returning it (or None)."""
        cancelled, self._active = self._active, None
        return cancelled

    def advance(self, now_ms: float) -> Optional[Tuple[ViewState, bool]]:
        """State for this tick, or None when nothing is animating."""
        if self._active is None:
            return None
        state, done = self._active.state_at(now_ms)
        if done:
            self._active = None
        return state, done


async def run_tween(
    controller,
    on_frame: Optional[FrameCallback] = None,
    clock: Clock = monotonic_ms,
    frame_interval_s: float = InteractionConstants.FRAME_INTERVAL_S
) -> ViewState:
    """Drive a controller's tween to completion on an asyncio event loop.

    Parameters
    ----------
    controller : ViewportController
        Controller whose active tween is advanced.
    on_frame : callable, optional
        Called with each new state; may be a coroutine function.
    clock : callable
        Returns the current time in milliseconds.
    frame_interval_s : float
        Sleep between frames.

    Returns
    -------
    ViewState
        The controller's state once no tween is running. If the tween is
        replaced mid-flight the loop simply keeps driving the replacement.
    """
    while controller.is_animating:
        if controller.tick(clock()):
            if on_frame is not None:
                result = on_frame(controller.state)
                if asyncio.iscoroutine(result):
                    await result
        if controller.is_animating:
            await asyncio.sleep(frame_interval_s)
    return controller.state
