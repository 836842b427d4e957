'''
Recency-weighted same-finger distance model with no layout-quality term.
'''

from annotated_layout import AnnotatedLayout, LayoutInvariantError
from cost_model import CostModel, KEYBOARD, log_norm
from events import Hold, Release, Tap

REPEAT_WEIGHT = 10
HELD_KEY_COST = 4
SAME_FINGER_HELD_COST = 100


class SimpleModel(CostModel):
    name = 'simple'

    def cost_of_typing(self, events) -> tuple[float, int]:
        # finger -> (index of its last press or None, row, col)
        last_used = {
            finger: (None, position.row, position.col)
            for finger, position in KEYBOARD.home_position.items()
        }
        held = []
        total_cost = 0
        count = 0
        for i, event in enumerate(events, start=1):
            if not isinstance(event, (Tap, Hold)):
                if isinstance(event, Release):
                    try:
                        held.remove(event.pos)
                    except ValueError:
                        raise LayoutInvariantError(f"key {event.pos} released but not held") from None
                continue

            position = KEYBOARD[event.pos]
            at, row, col = last_used[position.finger]
            weighted_sq_dist = (position.row - row) ** 2 + (2 * (position.col - col)) ** 2
            if at is not None:
                total_cost += REPEAT_WEIGHT * (1 + log_norm(weighted_sq_dist)) // (i - at)
            else:
                total_cost += 1 + log_norm(weighted_sq_dist)
            for h in held:
                total_cost += SAME_FINGER_HELD_COST if KEYBOARD[h].finger == position.finger else HELD_KEY_COST
            last_used[position.finger] = (i, position.row, position.col)

            if isinstance(event, Hold):
                held.append(event.pos)
            elif event.for_char:
                count += 1
        return float(total_cost), count

    def layout_cost(self, layout: AnnotatedLayout) -> float:
        return 0.0


MODEL = SimpleModel
