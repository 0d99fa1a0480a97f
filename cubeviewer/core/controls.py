"""
Pointer-drag rotation for the cube viewer.

Input devices feed a DragInputSource (start/move/end). The source drives a
DragRotationController which turns incremental pointer deltas into rotation
angles. All of this runs on the host's event thread, so there is no locking.
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ROTATION_SPEED = 0.005  # radians per pixel


@dataclass
class RotationState:
    """Accumulated rotation angles in radians (no wraparound)"""
    about_x: float = 0.0
    about_y: float = 0.0

    def reset(self):
        self.about_x = 0.0
        self.about_y = 0.0


class DragState(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragRotationController:
    """
    Two-state drag controller.

    While dragging, each move adds (current - anchor) * rotation_speed to the
    angles and moves the anchor to the current point, so every event only
    contributes its own increment. Releasing freezes the rotation with no
    momentum.
    """

    def __init__(self, rotation: Optional[RotationState] = None,
                 rotation_speed: float = ROTATION_SPEED):
        self.rotation = rotation if rotation is not None else RotationState()
        self.rotation_speed = rotation_speed
        self.state = DragState.IDLE
        self.anchor: Optional[Tuple[float, float]] = None

    @property
    def dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def start(self, x: float, y: float):
        """Begin a drag anchored at (x, y)"""
        self.state = DragState.DRAGGING
        self.anchor = (x, y)

    def move(self, x: float, y: float) -> bool:
        """
        Apply the delta since the previous event.

        Returns:
            True if the event changed the rotation (False while idle)
        """
        if self.state is not DragState.DRAGGING:
            return False

        anchor_x, anchor_y = self.anchor
        dx = x - anchor_x
        dy = y - anchor_y

        self.rotation.about_y += dx * self.rotation_speed
        self.rotation.about_x += dy * self.rotation_speed
        self.anchor = (x, y)
        return True

    def end(self):
        """Finish the drag, angles stay where they are"""
        if self.state is DragState.DRAGGING:
            logger.debug("Drag ended at about_x=%.4f about_y=%.4f",
                         self.rotation.about_x, self.rotation.about_y)
        self.state = DragState.IDLE
        self.anchor = None


class DragInputSource(ABC):
    """
    Platform-specific producer of drag events.

    Subclasses translate their device's events into start/move/end calls on
    the controller, so the rotation logic never sees device details.
    """

    def __init__(self, controller: DragRotationController):
        self.controller = controller

    @abstractmethod
    def start(self, x: float, y: float) -> bool:
        pass

    @abstractmethod
    def move(self, x: float, y: float) -> bool:
        pass

    @abstractmethod
    def end(self) -> bool:
        pass


class MouseDragSource(DragInputSource):
    """
    Mouse input from a moderngl-window WindowConfig.

    Only the primary button starts a drag. Coordinates are window pixels.
    The return value tells the host whether the event was consumed.
    """

    PRIMARY_BUTTON = 1

    def __init__(self, controller: DragRotationController, button: int = PRIMARY_BUTTON):
        super().__init__(controller)
        self.button = button

    def press(self, x: float, y: float, button: int) -> bool:
        if button != self.button:
            return False
        return self.start(x, y)

    def release(self, x: float, y: float, button: int) -> bool:
        if button != self.button:
            return False
        return self.end()

    def start(self, x: float, y: float) -> bool:
        self.controller.start(x, y)
        return True

    def move(self, x: float, y: float) -> bool:
        return self.controller.move(x, y)

    def end(self) -> bool:
        was_dragging = self.controller.dragging
        self.controller.end()
        return was_dragging


class TouchDragSource(DragInputSource):
    """
    Single-finger touch input.

    Every touch event is reported as consumed while this source is attached
    so the host does not run its own scroll or zoom gesture on top of the
    rotation. Touches after the first finger are ignored.
    """

    def __init__(self, controller: DragRotationController):
        super().__init__(controller)
        self.touch_id: Optional[int] = None

    def begin(self, touch_id: int, x: float, y: float) -> bool:
        if self.touch_id is None:
            self.touch_id = touch_id
            self.controller.start(x, y)
        return True

    def update(self, touch_id: int, x: float, y: float) -> bool:
        if touch_id == self.touch_id:
            self.controller.move(x, y)
        return True

    def finish(self, touch_id: int) -> bool:
        if touch_id == self.touch_id:
            self.touch_id = None
            self.controller.end()
        return True

    def start(self, x: float, y: float) -> bool:
        return self.begin(0, x, y)

    def move(self, x: float, y: float) -> bool:
        return self.update(0, x, y)

    def end(self) -> bool:
        return self.finish(0)


class ScriptedDragSource(DragInputSource):
    """
    Replays drag gestures given as point lists.

    Each gesture is a sequence of (x, y) points: the first starts the drag,
    the rest are moves, and the gesture ends after the last point.
    """

    def __init__(self, controller: DragRotationController,
                 gestures: Iterable[Sequence[Tuple[float, float]]] = ()):
        super().__init__(controller)
        self.gestures: List[Sequence[Tuple[float, float]]] = list(gestures)

    def start(self, x: float, y: float) -> bool:
        self.controller.start(x, y)
        return True

    def move(self, x: float, y: float) -> bool:
        return self.controller.move(x, y)

    def end(self) -> bool:
        self.controller.end()
        return True

    def play(self, gesture: Sequence[Tuple[float, float]]):
        """Replay one gesture"""
        if not gesture:
            return
        points = iter(gesture)
        self.start(*next(points))
        for x, y in points:
            self.move(x, y)
        self.end()

    def play_next(self) -> bool:
        """Replay the next queued gesture, False when none are left"""
        if not self.gestures:
            return False
        self.play(self.gestures.pop(0))
        return True
