'''
Physically grounded cost model.

Costs come from finger travel in millimeters away from each finger's resting key,
weighted by finger strength. Pressing again with a finger that was used a moment
ago is penalized, and the penalty halves with every intervening keystroke.
'''

import numpy as np

from annotated_layout import AnnotatedLayout, LayoutInvariantError
from cost_model import CostModel, KEYBOARD
from costs.heuristic import memorability_cost
from events import Hold, Release, Tap
from hardware import Finger, FingerType, Position
from keebs.sweep import HORIZ_SEP, VERT_SEP
from layout import NUM_KEYS

# travel in mm that costs one DIST_COST; unreachable directions use a huge value
UNREACHABLE = 32767

VERT_TRAVEL = {
    FingerType.INDEX: 62,
    FingerType.MIDDLE: 72,
    FingerType.RING: 64,
    FingerType.PINKY: 49,
    FingerType.THUMB: UNREACHABLE,
}

HORIZ_TRAVEL = {
    FingerType.INDEX: 37,
    FingerType.MIDDLE: UNREACHABLE,
    FingerType.RING: UNREACHABLE,
    FingerType.PINKY: UNREACHABLE,
    FingerType.THUMB: 70,
}

FINGER_STRENGTH = {
    FingerType.INDEX: 1.0,
    FingerType.MIDDLE: 1.1,
    FingerType.RING: 1.3,
    FingerType.PINKY: 1.5,
    FingerType.THUMB: 1.2,
}

# how far the fingertip naturally sits above (+) or below (-) the middle of its resting key
RESTING_OFFSET = {
    FingerType.PINKY: -4,
    FingerType.RING: 2,
    FingerType.MIDDLE: 1,
    FingerType.INDEX: -2,
    FingerType.THUMB: 0,
}

DIST_COST = 2.5
HOLD_COST = 0.5
HOLD_SAME_HAND_COST = 0.5
SAME_FINGER_HOLD_COST = 100.0

REPEAT_PENALTY = 3.0
REPEAT_FALLOFF = 2.0
REPEAT_MAX_T = 3


def dist_from_resting(position: Position) -> tuple[int, int]:
    '''(horizontal, vertical) travel in mm from the finger's resting key to position.'''
    rest = KEYBOARD.home_position[position.finger]
    offset = RESTING_OFFSET[position.finger.type()]
    if position.row < rest.row:
        vert = (rest.row - position.row) * VERT_SEP - offset
    elif position.row > rest.row:
        vert = (position.row - rest.row) * VERT_SEP + offset
    else:
        vert = 0
    horiz = abs(position.col - rest.col) * HORIZ_SEP
    return horiz, vert


def dist(src: Position, dest: Position) -> tuple[int, int]:
    return abs(dest.col - src.col) * HORIZ_SEP, abs(dest.row - src.row) * VERT_SEP


def dist_penalty(finger: Finger, travel: tuple[int, int]) -> float:
    horiz, vert = travel
    finger_type = finger.type()
    return DIST_COST * (horiz / HORIZ_TRAVEL[finger_type] + vert / VERT_TRAVEL[finger_type])


def cost_from_resting(position: Position) -> float:
    finger = position.finger
    return FINGER_STRENGTH[finger.type()] * (1 + dist_penalty(finger, dist_from_resting(position)))


def cost_from_pos(src: Position, dest: Position, after: int) -> float:
    '''Cost of pressing dest with the finger that pressed src, `after` keystrokes ago.'''
    finger = src.finger
    if dest.finger != finger:
        return 0.0
    return (
        FINGER_STRENGTH[finger.type()]
        * (1 + dist_penalty(finger, dist(src, dest)))
        * REPEAT_PENALTY
        / REPEAT_FALLOFF ** after
    )


def cost_of_holding(held: Position, pressed: Position) -> float:
    if held.finger == pressed.finger:
        return SAME_FINGER_HOLD_COST
    strength = FINGER_STRENGTH[held.finger.type()]
    if held.finger.hand != pressed.finger.hand:
        return strength * HOLD_COST
    return strength * (HOLD_COST + HOLD_SAME_HAND_COST)


class MeasuredModel(CostModel):
    name = 'measured'

    def __init__(self):
        positions = KEYBOARD.positions
        self.finger_for_pos = [position.finger for position in positions]
        self.cost_from_resting = np.array([cost_from_resting(p) for p in positions])
        self.cost_from_pos = np.array([
            [[cost_from_pos(src, dest, after) for after in range(REPEAT_MAX_T)] for dest in positions]
            for src in positions
        ])
        self.cost_of_holding = np.array([[cost_of_holding(h, p) for p in positions] for h in positions])
        assert self.cost_from_pos.shape == (NUM_KEYS, NUM_KEYS, REPEAT_MAX_T)

    def _press(self, at: int, pos: int, last_used: dict, held: list[int]) -> float:
        finger = self.finger_for_pos[pos]
        last_at, last_pos = last_used[finger]
        cost = 0.0
        if last_at is not None and at - last_at - 1 < REPEAT_MAX_T:
            cost += self.cost_from_pos[last_pos, pos, at - last_at - 1]
        else:
            cost += self.cost_from_resting[pos]
        for h in held:
            cost += self.cost_of_holding[h, pos]
        last_used[finger] = (at, pos)
        return float(cost)

    def cost_of_typing(self, events) -> tuple[float, int]:
        # finger -> (index of its last press or None, position it is over)
        last_used = {
            finger: (None, position.index)
            for finger, position in KEYBOARD.home_position.items()
        }
        held = []
        cost = 0.0
        count = 0
        for at, event in enumerate(events):
            if isinstance(event, Tap):
                cost += self._press(at, event.pos, last_used, held)
                if event.for_char:
                    count += 1
            elif isinstance(event, Hold):
                cost += self._press(at, event.pos, last_used, held)
                held.append(event.pos)
            elif isinstance(event, Release):
                last_used[self.finger_for_pos[event.pos]] = (at, event.pos)
                try:
                    held.remove(event.pos)
                except ValueError:
                    raise LayoutInvariantError(f"key {event.pos} released but not held") from None
        return cost, count

    def layout_cost(self, layout: AnnotatedLayout) -> float:
        return 6 * memorability_cost(layout)


MODEL = MeasuredModel
