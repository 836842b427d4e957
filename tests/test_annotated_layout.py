import random
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from annotated_layout import (
    DIGITS,
    NUM_LAYOUTS,
    AnnotatedLayout,
    CharEntries,
    CharIdxEntry,
    LayoutInvariantError,
)
from layout import NUM_KEYS, Layout


@pytest.fixture()
def qwerty() -> AnnotatedLayout:
    return AnnotatedLayout(Layout.from_name('qwerty'))


def test_indices(qwerty):
    assert qwerty.layer_idx == [0, 32, 30]
    assert qwerty.shift_idx == 33
    assert qwerty.num_layer == 2
    assert qwerty.num_layout == 3


def test_preferred_entries(qwerty):
    assert qwerty.preferred('h') == CharIdxEntry(0, 15, False)
    assert qwerty.preferred('H') == CharIdxEntry(0, 15, True)
    # the dedicated shifted key beats the shifted digit on the number layer
    assert qwerty.preferred('!') == CharIdxEntry(1, 19, False)
    assert qwerty.preferred('~') == CharIdxEntry(1, 21, False)
    assert qwerty.preferred('\n') == CharIdxEntry(1, 31, False)
    assert qwerty.preferred('1') == CharIdxEntry(2, 16, False)
    assert qwerty.preferred('€') is None


def test_every_typable_char_is_indexed(qwerty):
    for layer in range(len(qwerty)):
        for pos in range(NUM_KEYS):
            for shifted in (False, True):
                char = qwerty[layer, pos].typed_char(shifted)
                if char is not None:
                    assert CharIdxEntry(layer, pos, shifted) in qwerty.char_idx[char]


def test_char_entries_order():
    entries = CharEntries([
        CharIdxEntry(2, 8, True),
        CharIdxEntry(1, 12, False),
        CharIdxEntry(0, 4, True),
    ])
    assert entries.best() == CharIdxEntry(0, 4, True)
    entries.take(CharIdxEntry(0, 4, True))
    assert entries.best() == CharIdxEntry(1, 12, False)
    with pytest.raises(LayoutInvariantError):
        entries.take(CharIdxEntry(0, 4, True))
    with pytest.raises(LayoutInvariantError):
        entries.insert(CharIdxEntry(2, 8, True))


def test_is_digit(qwerty):
    assert qwerty.is_digit(2, 16)
    assert not qwerty.is_digit(1, 19)
    assert not qwerty.is_digit(0, 0)


def test_swap_updates_indices(qwerty):
    qwerty.swap((0, 0), (1, 5))
    assert qwerty.preferred('q') == CharIdxEntry(1, 5, False)
    assert qwerty.preferred('^') == CharIdxEntry(0, 0, False)
    assert qwerty == AnnotatedLayout(qwerty.into_layout())


def test_swap_moves_modifiers(qwerty):
    qwerty.swap((0, 33), (0, 0))
    assert qwerty.shift_idx == 0
    qwerty.swap((0, 30), (0, 10))
    assert qwerty.layer_idx == [0, 32, 10]
    assert qwerty == AnnotatedLayout(qwerty.into_layout())


def test_swap_is_an_involution(qwerty):
    original = qwerty.copy()
    rng = random.Random(1)
    for _ in range(200):
        a = (rng.randrange(1, 3), rng.randrange(NUM_KEYS))
        b = (rng.randrange(1, 3), rng.randrange(NUM_KEYS))
        qwerty.swap(a, b)
        qwerty.swap(a, b)
        assert qwerty == original


def test_layer_key_stays_on_home_layer(qwerty):
    before = qwerty.copy()
    with pytest.raises(LayoutInvariantError):
        qwerty.swap((0, 30), (1, 24))
    with pytest.raises(LayoutInvariantError):
        qwerty.swap((1, 0), (0, 30))
    with pytest.raises(LayoutInvariantError):
        qwerty.swap((0, 33), (2, 5))
    # a refused swap leaves every index untouched
    assert qwerty == before


@pytest.mark.parametrize("new", range(len(NUM_LAYOUTS)))
def test_switch_to_num_layout(qwerty, new):
    before = qwerty.copy()
    qwerty.switch_to_num_layout(new)
    assert qwerty.num_layout == new
    assert [qwerty.preferred(digit).pos for digit in DIGITS] == list(NUM_LAYOUTS[new])
    assert qwerty == AnnotatedLayout(qwerty.into_layout())

    qwerty.switch_to_num_layout(3)
    assert qwerty == before


def test_no_canonical_digits(qwerty):
    qwerty.swap((2, 15), (2, 0))
    layout = AnnotatedLayout(qwerty.into_layout())
    assert layout.num_layout is None
    with pytest.raises(AssertionError):
        layout.switch_to_num_layout(0)
