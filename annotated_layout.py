'''
A Layout together with the lookup indices the typing pipeline and the optimizer rely on.

AnnotatedLayout is the only place a layout is mutated. Every mutation goes through
`swap`, which keeps `char_idx`, `layer_idx`, `shift_idx` and `num_layout` exact.
'''

from bisect import insort
from dataclasses import dataclass

from layout import Key, LayerKey, Layout, ShiftKey

DIGITS = '0123456789'

# canonical placements of the digits 0..9 on the number layer
NUM_LAYOUTS = (
    (10, 11, 12, 13, 21, 22, 23, 1, 2, 3),
    (14, 11, 12, 13, 21, 22, 23, 1, 2, 3),
    (19, 16, 17, 18, 26, 27, 28, 6, 7, 8),
    (15, 16, 17, 18, 26, 27, 28, 6, 7, 8),
    (20, 21, 22, 23, 11, 12, 13, 1, 2, 3),
    (10, 21, 22, 23, 11, 12, 13, 1, 2, 3),
    (14, 21, 22, 23, 11, 12, 13, 1, 2, 3),
    (29, 26, 27, 28, 16, 17, 18, 6, 7, 8),
    (19, 26, 27, 28, 16, 17, 18, 6, 7, 8),
    (15, 26, 27, 28, 16, 17, 18, 6, 7, 8),
    (0, 1, 2, 3, 4, 5, 6, 7, 8, 9),
    (9, 0, 1, 2, 3, 4, 5, 6, 7, 8),
    (10, 11, 12, 13, 14, 15, 16, 17, 18, 19),
    (19, 10, 11, 12, 13, 14, 15, 16, 17, 18),
    (20, 21, 22, 23, 24, 25, 26, 27, 28, 29),
    (29, 20, 21, 22, 23, 24, 25, 26, 27, 28),
    (10, 11, 12, 13, 23, 26, 16, 17, 18, 19),
    (10, 11, 12, 13, 3, 6, 16, 17, 18, 19),
    (0, 1, 2, 3, 4, 10, 11, 12, 13, 14),
    (10, 11, 12, 13, 14, 20, 21, 22, 23, 24),
    (5, 6, 7, 8, 9, 15, 16, 17, 18, 19),
    (15, 16, 17, 18, 19, 25, 26, 27, 28, 29),
)


class LayoutInvariantError(RuntimeError):
    '''The derived indices of a layout disagree with its keys, or a key event stream is malformed.'''


@dataclass(frozen=True, slots=True)
class CharIdxEntry:
    '''
    One way of producing a character: the key at (layer, pos), with or without shift.
    '''
    layer: int
    pos: int
    shifted: bool

    @property
    def preference(self) -> tuple[bool, bool, int, int]:
        '''Sort key: larger is preferred. Home layer, then unshifted, then lower layer, then lower position.'''
        return (self.layer == 0, not self.shifted, -self.layer, -self.pos)


class CharEntries:
    '''
    The entries for one character, kept sorted by preference.
    '''
    __slots__ = ('entries',)

    def __init__(self, entries=()):
        self.entries = []
        for entry in entries:
            self.insert(entry)

    def insert(self, entry: CharIdxEntry) -> None:
        if entry in self.entries:
            raise LayoutInvariantError(f"duplicate index entry {entry}")
        insort(self.entries, entry, key=lambda e: e.preference)

    def take(self, entry: CharIdxEntry) -> None:
        try:
            self.entries.remove(entry)
        except ValueError:
            raise LayoutInvariantError(f"missing index entry {entry}") from None

    def best(self) -> CharIdxEntry | None:
        return self.entries[-1] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CharEntries):
            return NotImplemented
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"CharEntries({self.entries!r})"


class AnnotatedLayout:
    """
    Wrap a Layout with derived lookup indices.

    Attributes
    ----------
    layout : Layout
        The wrapped layout. Mutate it only through `swap`.
    char_idx : dict[str, CharEntries]
        Every way each character can be typed.
    layer_idx : list[int]
        layer_idx[n] is the home-layer position of the key that switches to layer n.
    shift_idx : int | None
        Home-layer position of the shift key.
    num_layer : int
        Layer holding the digits.
    num_layout : int | None
        Index into NUM_LAYOUTS of the current digit placement, or None when the
        digits are absent or not in a canonical placement.
    """
    def __init__(self, layout: Layout):
        self.layout = layout.copy()
        self.char_idx = {}
        self.layer_idx = [0] * len(layout)
        self.shift_idx = None

        for layer_num, layer in enumerate(self.layout):
            for pos, key in enumerate(layer):
                for shifted in (False, True):
                    char = key.typed_char(shifted)
                    if char is not None:
                        self.char_idx.setdefault(char, CharEntries()).insert(CharIdxEntry(layer_num, pos, shifted))

        for pos, key in enumerate(self.layout[0]):
            if isinstance(key, LayerKey):
                if key.layer >= len(self.layer_idx):
                    raise LayoutInvariantError(f"layer key at {pos} switches to missing layer {key.layer}")
                self.layer_idx[key.layer] = pos
            elif isinstance(key, ShiftKey) and self.shift_idx is None:
                self.shift_idx = pos

        zero = self.preferred('0')
        self.num_layer = zero.layer if zero is not None else 0
        self.num_layout = self._find_num_layout()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnnotatedLayout):
            return NotImplemented
        return (
            self.layout == other.layout
            and self.char_idx == other.char_idx
            and self.layer_idx == other.layer_idx
            and self.shift_idx == other.shift_idx
            and self.num_layer == other.num_layer
            and self.num_layout == other.num_layout
        )

    def __getitem__(self, slot: tuple[int, int]) -> Key:
        layer, pos = slot
        return self.layout[layer][pos]

    def __len__(self) -> int:
        return len(self.layout)

    def copy(self) -> 'AnnotatedLayout':
        return AnnotatedLayout(self.layout)

    def into_layout(self) -> Layout:
        return self.layout.copy()

    def preferred(self, char: str) -> CharIdxEntry | None:
        '''The preferred way to type char, or None if the layout cannot type it.'''
        entries = self.char_idx.get(char)
        if entries is None:
            return None
        return entries.best()

    def is_digit(self, layer: int, pos: int) -> bool:
        char = self.layout[layer][pos].typed_char(False)
        return char is not None and char in DIGITS

    def _find_num_layout(self) -> int | None:
        entries = [self.preferred(digit) for digit in DIGITS]
        if any(entry is None or entry.layer != self.num_layer or entry.shifted for entry in entries):
            return None
        positions = tuple(entry.pos for entry in entries)
        try:
            return NUM_LAYOUTS.index(positions)
        except ValueError:
            return None

    def swap(self, a: tuple[int, int], b: tuple[int, int]) -> None:
        """
        Exchange the keys in slots a and b, keeping every index consistent.

        Parameters
        ----------
        a, b : tuple[int, int]
            (layer, position) of the two slots.

        Raises
        ------
        LayoutInvariantError
            If an index disagrees with the keys being moved, or a layer or shift
            key would leave the home layer.
        """
        if a == b:
            return
        (layer_a, pos_a), (layer_b, pos_b) = a, b
        key_a = self.layout[layer_a][pos_a]
        key_b = self.layout[layer_b][pos_b]
        self._check_modifier_move(key_a, a, b)
        self._check_modifier_move(key_b, b, a)

        # take every moving entry out before putting any back, a char can live in both slots
        moved = []
        for shifted in (False, True):
            for (layer, pos, key), (dest_layer, dest_pos) in (((layer_a, pos_a, key_a), b), ((layer_b, pos_b, key_b), a)):
                char = key.typed_char(shifted)
                if char is None:
                    continue
                entries = self.char_idx.get(char)
                if entries is None:
                    raise LayoutInvariantError(f"no index entries for {char!r}")
                entries.take(CharIdxEntry(layer, pos, shifted))
                moved.append((entries, CharIdxEntry(dest_layer, dest_pos, shifted)))
        for entries, entry in moved:
            entries.insert(entry)

        self._move_modifier(key_a, b)
        self._move_modifier(key_b, a)

        self.layout[layer_a][pos_a], self.layout[layer_b][pos_b] = key_b, key_a

        if self.layout[layer_a][pos_a] != key_b or self.layout[layer_b][pos_b] != key_a:
            raise LayoutInvariantError(f"swap of {a} and {b} did not exchange the keys")

    def _check_modifier_move(self, key: Key, src: tuple[int, int], dest: tuple[int, int]) -> None:
        if isinstance(key, LayerKey):
            if src[0] != 0 or dest[0] != 0:
                raise LayoutInvariantError(f"layer key {key} must stay on the home layer, moving {src} to {dest}")
            if self.layer_idx[key.layer] != src[1]:
                raise LayoutInvariantError(f"layer_idx[{key.layer}] is {self.layer_idx[key.layer]}, expected {src[1]}")
        elif isinstance(key, ShiftKey):
            if src[0] != 0 or dest[0] != 0:
                raise LayoutInvariantError(f"shift key must stay on the home layer, moving {src} to {dest}")
            if self.shift_idx != src[1]:
                raise LayoutInvariantError(f"shift_idx is {self.shift_idx}, expected {src[1]}")

    def _move_modifier(self, key: Key, dest: tuple[int, int]) -> None:
        if isinstance(key, LayerKey):
            self.layer_idx[key.layer] = dest[1]
        elif isinstance(key, ShiftKey):
            self.shift_idx = dest[1]

    def switch_to_num_layout(self, new: int) -> None:
        '''
        Move the ten digits, as a block, to the placement NUM_LAYOUTS[new] on the number layer.
        '''
        assert self.num_layout is not None, "layout has no canonical digit placement"
        assert self.num_layout == self._find_num_layout()

        for digit, new_pos in zip(DIGITS, NUM_LAYOUTS[new]):
            old = self.preferred(digit)
            if old.layer != self.num_layer or old.shifted:
                raise LayoutInvariantError(f"digit {digit} at {old} is not an unshifted key on layer {self.num_layer}")
            self.swap((self.num_layer, old.pos), (self.num_layer, new_pos))
            if self.preferred(digit) != CharIdxEntry(self.num_layer, new_pos, False):
                raise LayoutInvariantError(f"digit {digit} did not move to {new_pos}")

        self.num_layout = new
        assert self.num_layout == self._find_num_layout()
