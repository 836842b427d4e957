'''
Table-driven cost model: a base cost per key, plus transition costs between
consecutive keys and surcharges for keys held while another is tapped.
'''

import numpy as np

from annotated_layout import AnnotatedLayout, LayoutInvariantError
from cost_model import CostModel, KEYBOARD, log_norm
from events import Hold, Release, Tap, Unknown
from hardware import FingerType, Hand
from layout import NUM_KEYS

KEY_COST = (
    30, 24, 20, 22, 32,   32, 22, 20, 24, 30,
    16, 13, 11, 10, 29,   29, 10, 11, 13, 16,
    32, 26, 23, 16, 30,   30, 16, 23, 26, 32,
                16, 11,   11, 16,
)

VERT_PENALTY = {
    FingerType.MIDDLE: 2,
    FingerType.INDEX: 3,
    FingerType.RING: 5,
    FingerType.PINKY: 7,
    FingerType.THUMB: 10,
}

HORIZ_PENALTY = {
    FingerType.MIDDLE: 6,
    FingerType.INDEX: 5,
    FingerType.RING: 8,
    FingerType.PINKY: 12,
    FingerType.THUMB: 3,
}

SAME_FINGER_STRENGTH = {
    FingerType.INDEX: 6,
    FingerType.MIDDLE: 7,
    FingerType.RING: 12,
    FingerType.PINKY: 18,
    FingerType.THUMB: 10,
}

HELD_STRENGTH = {
    FingerType.INDEX: 6,
    FingerType.MIDDLE: 6,
    FingerType.RING: 8,
    FingerType.PINKY: 10,
    FingerType.THUMB: 6,
}

OUTWARD_PENALTY = 1
STRETCH_PENALTY = 2
CROSS_HAND_COST = 2
SAME_FINGER_HELD_COST = 255


def thumb_combo_cost(thumb_col: int, finger_col: int, finger_row: int) -> int | None:
    '''
    Awkward thumb and finger combinations on the same hand, or None for an unlisted pair.
    '''
    if thumb_col in (1, 2):
        if finger_col in (4, 5):
            return 2 if finger_row in (0, 1) else 3
        if finger_col in (3, 6) and finger_row == 2:
            return 2
    elif thumb_col in (0, 3):
        if finger_col in (4, 5):
            return 3 if finger_row in (0, 1) else 5
        if finger_col in (3, 6) and finger_row == 2:
            return 2
    return None


def same_hand_cost(i: int, j: int) -> int:
    '''Moving from key i to key j with a different finger of the same hand.'''
    p0, p1 = KEYBOARD[i], KEYBOARD[j]
    f0, f1 = p0.finger.type(), p1.finger.type()
    if f0 == FingerType.THUMB:
        cost = thumb_combo_cost(p0.col, p1.col, p1.row)
        return OUTWARD_PENALTY if cost is None else cost
    if f1 == FingerType.THUMB:
        cost = thumb_combo_cost(p1.col, p0.col, p0.row)
        return 0 if cost is None else cost

    if p0.finger.hand == Hand.LEFT:
        outward = p1.col < p0.col
    else:
        outward = p1.col > p0.col
    stretch = any(col in (4, 5) for col in (p0.col, p1.col))
    row_dist = abs(p1.row - p0.row)
    return OUTWARD_PENALTY * outward + STRETCH_PENALTY * stretch + log_norm(row_dist * VERT_PENALTY[f1])


def next_key_cost(i: int, j: int) -> int:
    p0, p1 = KEYBOARD[i], KEYBOARD[j]
    if p0.finger == p1.finger:
        finger = p0.finger.type()
        row_dist = abs(p1.row - p0.row)
        col_dist = abs(p1.col - p0.col)
        sq_dist = VERT_PENALTY[finger] * row_dist ** 2 + HORIZ_PENALTY[finger] * col_dist ** 2
        if sq_dist == 0:
            return SAME_FINGER_STRENGTH[finger]
        return SAME_FINGER_STRENGTH[finger] + log_norm(sq_dist)
    if p0.finger.hand == p1.finger.hand:
        return same_hand_cost(i, j)
    return CROSS_HAND_COST


def held_key_cost(i: int, j: int) -> int:
    '''Surcharge for tapping key j while key i is held.'''
    p0, p1 = KEYBOARD[i], KEYBOARD[j]
    strength = HELD_STRENGTH[p0.finger.type()]
    if p0.finger == p1.finger:
        return SAME_FINGER_HELD_COST
    if p0.finger.hand == p1.finger.hand:
        return strength + same_hand_cost(i, j)
    return strength


ORDERED_PAIRS = ('()', '{}', '[]', '<>')
SIMILAR_PAIRS = (
    '+-', '*/', '+*', '-/', '/%', '\\/', '\\|', '/|', '"\'', '*&',
    '!?', '.,', '$£', '-_', '-~', "'`", ';:',
)

LOWER_ALPHA = 'abcdefghijklmnopqrstuvwxyz'
UPPER_ALPHA = LOWER_ALPHA.upper()
MATHS_SYMBOLS = '+-*/%=!@<>^&|'
BRACKETS = '(){}[]<>'
QUOTES = '\'"`'
PUNCTUATION = ',.;:!?"\'-'
LINES = '-_\\|/~'

THUMB_POSITIONS = range(30, NUM_KEYS)


def ordered_pair_penalty(layout: AnnotatedLayout) -> float:
    '''
    Opening and closing brackets should sit side by side, mirrored, or at least in order.
    '''
    penalty = 0.0
    for l_char, r_char in ORDERED_PAIRS:
        left, right = layout.preferred(l_char), layout.preferred(r_char)
        if left is None or right is None:
            continue
        if left.layer != right.layer or left.shifted != right.shifted:
            penalty += 6 if left.pos != right.pos else 2
            continue
        l_row, l_col = divmod(left.pos, 10)
        r_row, r_col = divmod(right.pos, 10)
        if l_row == r_row:
            if (
                (l_row == 3 and l_col < 2 and r_col == 3 - l_col)
                or (l_col < 5 and r_col == 9 - l_col)
                or r_col == l_col + 1
            ):
                penalty += 0
            elif l_col < r_col and (r_col < 5 or 5 <= l_col):
                penalty += 1
            else:
                penalty += 4
        elif l_col == r_col:
            penalty += 1
        else:
            penalty += 4
    return penalty


def similar_pair_penalty(layout: AnnotatedLayout) -> float:
    penalty = 0.0
    for a_char, b_char in SIMILAR_PAIRS:
        a, b = layout.preferred(a_char), layout.preferred(b_char)
        if a is None or b is None:
            continue
        if a.layer != b.layer or a.shifted != b.shifted:
            penalty += 4 if a.pos != b.pos else 1
            continue
        a_row, a_col = divmod(a.pos, 10)
        b_row, b_col = divmod(b.pos, 10)
        if a_row == b_row:
            mirrored = (a_row == 3 and b_col == 3 - a_col) or b_col == 9 - a_col
            if not (mirrored or abs(a_col - b_col) == 1):
                penalty += 2
        elif a_col != b_col:
            penalty += 2
    return penalty


def layer_variation(layout: AnnotatedLayout, chars: str) -> float:
    '''
    How scattered a class of characters is across layers and shift states.
    '''
    placements = []
    for char in chars:
        entry = layout.preferred(char)
        if entry is not None:
            placements.append((entry.layer, entry.shifted))
    if not placements:
        return 0.0
    different = sum(
        a != b
        for i, a in enumerate(placements)
        for b in placements[i + 1:]
    )
    return different / len(placements)


def memorability_cost(layout: AnnotatedLayout) -> float:
    shift_penalty = 0 if layout.shift_idx is None or layout.shift_idx in THUMB_POSITIONS else 2
    layer_penalty = sum(0 if pos in THUMB_POSITIONS else 2 for pos in layout.layer_idx[1:])
    return (
        0.01 * ordered_pair_penalty(layout)
        + 0.002 * similar_pair_penalty(layout)
        + 0.01 * layer_variation(layout, LOWER_ALPHA)
        + 0.01 * layer_variation(layout, UPPER_ALPHA)
        + 0.002 * layer_variation(layout, MATHS_SYMBOLS)
        + 0.002 * layer_variation(layout, BRACKETS)
        + 0.002 * layer_variation(layout, QUOTES)
        + 0.002 * layer_variation(layout, PUNCTUATION)
        + 0.002 * layer_variation(layout, LINES)
        + 0.1 * shift_penalty
        + 0.1 * layer_penalty
    )


class HeuristicModel(CostModel):
    name = 'heuristic'

    def __init__(self):
        self.key_cost = np.array(KEY_COST, dtype=np.int64)
        self.next_key_cost = np.array(
            [[next_key_cost(i, j) for j in range(NUM_KEYS)] for i in range(NUM_KEYS)],
            dtype=np.int64,
        )
        self.held_key_cost = np.array(
            [[held_key_cost(i, j) for j in range(NUM_KEYS)] for i in range(NUM_KEYS)],
            dtype=np.int64,
        )

    def cost_of_typing(self, events) -> tuple[float, int]:
        held = []
        prev = None
        total_cost = 0
        count = 0
        for event in events:
            if isinstance(event, Tap):
                pos = event.pos
                total_cost += int(self.key_cost[pos])
                for h in held:
                    total_cost += int(self.held_key_cost[h, pos])
                if prev is not None:
                    total_cost += int(self.next_key_cost[prev, pos])
                if event.for_char:
                    count += 1
                prev = pos
            elif isinstance(event, Hold):
                held.append(event.pos)
                prev = None
            elif isinstance(event, Release):
                try:
                    held.remove(event.pos)
                except ValueError:
                    raise LayoutInvariantError(f"key {event.pos} released but not held") from None
            elif isinstance(event, Unknown):
                prev = None
        return float(total_cost), count

    def layout_cost(self, layout: AnnotatedLayout) -> float:
        return memorability_cost(layout)


MODEL = HeuristicModel
