import random
import string
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from annotated_layout import AnnotatedLayout
from layout import EMPTY, NUM_KEYS, KeyCode, LayerKey, Layout, ShiftKey, TypingKey
from mutation import (
    LayoutTooConstrained,
    MutationGenerator,
    PinnedTo,
    SwapKeys,
    SwapNumLayout,
)


@pytest.fixture()
def qwerty() -> AnnotatedLayout:
    return AnnotatedLayout(Layout.from_name('qwerty'))


def test_pin_classes(qwerty):
    generator = MutationGenerator(pinned_keys={(1, 10)})
    assert generator.pinned(qwerty, 0, 0) == PinnedTo.POSITION  # q
    assert generator.pinned(qwerty, 0, 31) == PinnedTo.POSITION  # space
    assert generator.pinned(qwerty, 0, 30) == PinnedTo.LAYER
    assert generator.pinned(qwerty, 0, 33) == PinnedTo.LAYER
    assert generator.pinned(qwerty, 1, 10) == PinnedTo.KEY
    assert generator.pinned(qwerty, 1, 0) == PinnedTo.NONE
    assert generator.pinned(qwerty, 2, 16) == PinnedTo.NONE  # digits move as a block


def test_single_layer_pins():
    layer = [TypingKey(KeyCode.COMMA), TypingKey(KeyCode.DOT)] + [EMPTY] * (NUM_KEYS - 2)
    layout = AnnotatedLayout(Layout([layer]))
    generator = MutationGenerator(pinned_positions=(), pinned_keys={(0, 0)})
    assert generator.pinned(layout, 0, 0) == PinnedTo.POSITION
    assert generator.pinned(layout, 0, 1) == PinnedTo.NONE


def test_mutations_change_the_layout(qwerty):
    generator = MutationGenerator(rng=random.Random(7))
    for _ in range(200):
        before = qwerty.copy()
        mutation = generator.generate(qwerty)
        mutation.apply(qwerty)
        assert qwerty.layout != before.layout
        assert qwerty == AnnotatedLayout(qwerty.into_layout())


def test_apply_undo_round_trip(qwerty):
    generator = MutationGenerator(rng=random.Random(11))
    original = qwerty.copy()
    for _ in range(1000):
        mutation = generator.generate(qwerty)
        mutation.apply(qwerty)
        mutation.undo(qwerty)
        assert qwerty == original


def test_apply_undo_after_mutating(qwerty):
    generator = MutationGenerator(rng=random.Random(13))
    for _ in range(1000):
        generator.generate(qwerty).apply(qwerty)

    mutated = qwerty.copy()
    for _ in range(1000):
        mutation = generator.generate(qwerty)
        mutation.apply(qwerty)
        mutation.undo(qwerty)
        assert qwerty == mutated


def test_pins_are_respected(qwerty):
    generator = MutationGenerator(pinned_keys={(1, 10)}, rng=random.Random(17))
    start = qwerty.copy()
    tab = qwerty[1, 10]
    for _ in range(2000):
        mutation = generator.generate(qwerty)
        if isinstance(mutation, SwapKeys):
            slots = {(mutation.layer_a, mutation.pos_a), (mutation.layer_b, mutation.pos_b)}
            assert (0, 31) not in slots
            if any(qwerty[slot] == tab for slot in slots):
                assert mutation.pos_a == mutation.pos_b
        mutation.apply(qwerty)

        for pos in range(30):
            char = start[0, pos].typed_char(False)
            if char is not None and char in string.ascii_lowercase:
                assert qwerty[0, pos] == start[0, pos]
        assert qwerty[0, 31] == start[0, 31]
        # modifiers stay on the home layer
        for layer in range(1, len(qwerty)):
            assert not any(isinstance(key, (LayerKey, ShiftKey)) for key in qwerty.layout[layer])
        assert qwerty == AnnotatedLayout(qwerty.into_layout())


def test_pinned_key_keeps_its_physical_key(qwerty):
    tab = qwerty[1, 10]
    generator = MutationGenerator(pinned_keys={(1, 10)}, rng=random.Random(0))
    for step in range(3000):
        generator.generate(qwerty).apply(qwerty)
        slots = [
            (layer, pos)
            for layer in range(len(qwerty))
            for pos in range(NUM_KEYS)
            if qwerty[layer, pos] == tab
        ]
        assert len(slots) == 1
        assert slots[0][1] == 10, f"step {step}: {tab} moved to {slots}"
        # the key that took its old slot is not pinned in its place
        if qwerty[1, 10] != tab:
            assert generator.pinned(qwerty, 1, 10) != PinnedTo.KEY


def test_pinned_digit_freezes_num_layout(qwerty):
    digit_slot = next((2, pos) for pos in range(NUM_KEYS) if qwerty.is_digit(2, pos))
    generator = MutationGenerator(pinned_positions={(0, 31), digit_slot}, rng=random.Random(29))
    digits = {pos: qwerty[2, pos] for pos in range(NUM_KEYS) if qwerty.is_digit(2, pos)}
    assert len(digits) == 10
    for _ in range(1000):
        mutation = generator.generate(qwerty)
        assert not isinstance(mutation, SwapNumLayout)
        mutation.apply(qwerty)
        assert {pos: qwerty[2, pos] for pos in digits} == digits
    assert qwerty.num_layout == 3


def test_num_layout_mutation(qwerty):
    generator = MutationGenerator(rng=random.Random(19))
    seen = False
    for _ in range(500):
        mutation = generator.generate(qwerty)
        if isinstance(mutation, SwapNumLayout):
            assert mutation.layout_a == qwerty.num_layout
            assert mutation.layout_b != mutation.layout_a
            seen = True
        mutation.apply(qwerty)
        assert qwerty.num_layout is not None
    assert seen


def test_too_constrained():
    layer = [TypingKey(KeyCode.A)] + [EMPTY] * (NUM_KEYS - 1)
    layout = AnnotatedLayout(Layout([layer]))
    generator = MutationGenerator(rng=random.Random(23))
    with pytest.raises(LayoutTooConstrained):
        generator.generate(layout)
