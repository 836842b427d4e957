'''
Random, reversible, constraint-respecting changes to an AnnotatedLayout.
'''

import random
import string
from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable

from annotated_layout import NUM_LAYOUTS, AnnotatedLayout
from layout import EMPTY, NUM_KEYS, Key, LayerKey, ShiftKey

# the space bar
DEFAULT_PINNED_POSITIONS = frozenset({(0, 31)})

MAX_ATTEMPTS = 1000


class LayoutTooConstrained(RuntimeError):
    '''No valid mutation was found within the attempt budget.'''


@unique
class PinnedTo(Enum):
    '''
    How far a slot's key may move, from free to fixed.
    '''
    NONE = 0
    # stays on the same physical key, any layer
    KEY = 1
    # stays on the same layer, any key
    LAYER = 2
    POSITION = 3


@dataclass(frozen=True)
class SwapKeys:
    layer_a: int
    pos_a: int
    layer_b: int
    pos_b: int

    def apply(self, layout: AnnotatedLayout) -> None:
        layout.swap((self.layer_a, self.pos_a), (self.layer_b, self.pos_b))

    def undo(self, layout: AnnotatedLayout) -> None:
        layout.swap((self.layer_a, self.pos_a), (self.layer_b, self.pos_b))


@dataclass(frozen=True)
class SwapNumLayout:
    layout_a: int
    layout_b: int

    def apply(self, layout: AnnotatedLayout) -> None:
        assert layout.num_layout == self.layout_a
        layout.switch_to_num_layout(self.layout_b)

    def undo(self, layout: AnnotatedLayout) -> None:
        assert layout.num_layout == self.layout_b
        layout.switch_to_num_layout(self.layout_a)


Mutation = SwapKeys | SwapNumLayout


class MutationGenerator:
    """
    Generate mutations that respect pinned keys.

    Parameters
    ----------
    pinned_positions : set of (layer, pos)
        Slots whose keys never move.
    pinned_keys : set of (layer, pos)
        Slots whose keys may only move to another layer of the same physical key.
        The keys are looked up the first time the generator sees a layout and
        follow their key from then on.
    rng : random.Random
        Source of randomness, one per trial.
    """
    def __init__(
        self,
        pinned_positions=DEFAULT_PINNED_POSITIONS,
        pinned_keys=frozenset(),
        rng: random.Random | None = None,
    ):
        self.pinned_positions = frozenset(tuple(slot) for slot in pinned_positions)
        self.pinned_keys = frozenset(tuple(slot) for slot in pinned_keys)
        self.rng = rng if rng is not None else random.Random()
        self._key_pins: frozenset[Key] | None = None

    def key_pins(self, layout: AnnotatedLayout) -> frozenset[Key]:
        '''The keys held to their physical key, taken from pinned_keys on first use.'''
        if self._key_pins is None:
            self._key_pins = frozenset(
                layout[layer, pos] for layer, pos in self.pinned_keys
                if layout[layer, pos] != EMPTY
            )
        return self._key_pins

    def _digit_pinned(self, layout: AnnotatedLayout) -> bool:
        return any(
            layer < len(layout) and layout.is_digit(layer, pos)
            for layer, pos in self.pinned_positions
        )

    def pinned(self, layout: AnnotatedLayout, layer: int, pos: int) -> PinnedTo:
        key = layout[layer, pos]
        char = key.typed_char(False)
        if (layer, pos) in self.pinned_positions:
            pin = PinnedTo.POSITION
        elif char is not None and char in string.ascii_letters:
            # keeps upper and lower case on the same key
            pin = PinnedTo.POSITION
        elif layout.is_digit(layer, pos) and (layout.num_layout is None or self._digit_pinned(layout)):
            # digits only move as a canonical block, and not at all once one of them is pinned
            pin = PinnedTo.POSITION
        elif isinstance(key, (LayerKey, ShiftKey)):
            pin = PinnedTo.LAYER
        elif key in self.key_pins(layout):
            pin = PinnedTo.KEY
        else:
            pin = PinnedTo.NONE

        if len(layout) == 1:
            if pin == PinnedTo.LAYER:
                return PinnedTo.NONE
            if pin == PinnedTo.KEY:
                return PinnedTo.POSITION
        return pin

    def _pick(self, draw: Callable[[], tuple[int, int]], accept: Callable[[int, int], bool]) -> tuple[int, int]:
        for _ in range(MAX_ATTEMPTS):
            slot = draw()
            if accept(*slot):
                return slot
        raise LayoutTooConstrained(f"no eligible key found in {MAX_ATTEMPTS} attempts")

    def generate(self, layout: AnnotatedLayout) -> Mutation:
        '''
        Return a mutation that changes layout, without applying it.

        Raises
        ------
        LayoutTooConstrained
            If the pins leave nothing to swap.
        '''
        rng = self.rng
        num_layers = len(layout)

        def any_slot():
            return rng.randrange(num_layers), rng.randrange(NUM_KEYS)

        for _ in range(MAX_ATTEMPTS):
            layer_a, pos_a = self._pick(
                any_slot,
                lambda layer, pos: self.pinned(layout, layer, pos) != PinnedTo.POSITION,
            )

            if layout.is_digit(layer_a, pos_a):
                current = layout.num_layout
                layout_b = rng.randrange(len(NUM_LAYOUTS) - 1)
                if layout_b >= current:
                    layout_b += 1
                # the digits trade places with whatever holds their new slots
                if all(
                    layout.is_digit(layout.num_layer, pos)
                    or self.pinned(layout, layout.num_layer, pos) == PinnedTo.NONE
                    for pos in NUM_LAYOUTS[layout_b]
                ):
                    return SwapNumLayout(current, layout_b)
                continue

            pin = self.pinned(layout, layer_a, pos_a)
            if pin == PinnedTo.LAYER:
                layer_b, pos_b = self._pick(
                    lambda: (layer_a, rng.randrange(NUM_KEYS)),
                    lambda layer, pos: (
                        self.pinned(layout, layer, pos) not in (PinnedTo.KEY, PinnedTo.POSITION)
                        and not layout.is_digit(layer, pos)
                    ),
                )
            elif pin == PinnedTo.KEY:
                layer_b, pos_b = self._pick(
                    lambda: (rng.randrange(num_layers), pos_a),
                    lambda layer, pos: (
                        self.pinned(layout, layer, pos) not in (PinnedTo.LAYER, PinnedTo.POSITION)
                        and not layout.is_digit(layer, pos)
                    ),
                )
            else:
                layer_b, pos_b = self._pick(
                    any_slot,
                    lambda layer, pos: (
                        self.pinned(layout, layer, pos) == PinnedTo.NONE
                        and not layout.is_digit(layer, pos)
                    ),
                )

            if layout[layer_a, pos_a] != layout[layer_b, pos_b]:
                return SwapKeys(layer_a, pos_a, layer_b, pos_b)

        raise LayoutTooConstrained(f"no distinct pair of keys found in {MAX_ATTEMPTS} attempts")
