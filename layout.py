'''
Key model for a 34-key multi-layer layout, and its JSON layout file format.
'''

import copy
import json
import os
import re
from dataclasses import dataclass
from enum import Enum, unique

NUM_KEYS = 34

KEYBOARD_NAME = 'ferris/sweep'
KEYMAP_NAME = 'sweepopt'
LAYOUT_NAME = 'LAYOUT_split_3x5_2'


class LayoutParseError(ValueError):
    '''A layout file could not be decoded.'''


class UnknownValue(LayoutParseError):
    def __init__(self, value: str):
        super().__init__(f"unknown value: {value}")
        self.value = value


class MissingValue(LayoutParseError):
    def __init__(self, field: str):
        super().__init__(f"missing value: {field}")
        self.field = field


class WrongType(LayoutParseError):
    def __init__(self, expected: str, found: object):
        super().__init__(f"wrong type: expected {expected}, found {found!r}")
        self.expected = expected
        self.found = found


class WrongLength(LayoutParseError):
    def __init__(self, expected: int, found: int):
        super().__init__(f"wrong length: expected {expected}, found {found}")
        self.expected = expected
        self.found = found


class WrongValue(LayoutParseError):
    def __init__(self, expected: str, found: object):
        super().__init__(f"wrong value: expected {expected!r}, found {found!r}")
        self.expected = expected
        self.found = found


@unique
class KeyCode(Enum):
    """
    Physical key identifiers with their firmware token, unshifted and shifted output.
    """
    A = ('KC_A', 'a', 'A')
    B = ('KC_B', 'b', 'B')
    C = ('KC_C', 'c', 'C')
    D = ('KC_D', 'd', 'D')
    E = ('KC_E', 'e', 'E')
    F = ('KC_F', 'f', 'F')
    G = ('KC_G', 'g', 'G')
    H = ('KC_H', 'h', 'H')
    I = ('KC_I', 'i', 'I')
    J = ('KC_J', 'j', 'J')
    K = ('KC_K', 'k', 'K')
    L = ('KC_L', 'l', 'L')
    M = ('KC_M', 'm', 'M')
    N = ('KC_N', 'n', 'N')
    O = ('KC_O', 'o', 'O')
    P = ('KC_P', 'p', 'P')
    Q = ('KC_Q', 'q', 'Q')
    R = ('KC_R', 'r', 'R')
    S = ('KC_S', 's', 'S')
    T = ('KC_T', 't', 'T')
    U = ('KC_U', 'u', 'U')
    V = ('KC_V', 'v', 'V')
    W = ('KC_W', 'w', 'W')
    X = ('KC_X', 'x', 'X')
    Y = ('KC_Y', 'y', 'Y')
    Z = ('KC_Z', 'z', 'Z')

    N0 = ('KC_0', '0', ')')
    N1 = ('KC_1', '1', '!')
    N2 = ('KC_2', '2', '"')
    N3 = ('KC_3', '3', '£')
    N4 = ('KC_4', '4', '$')
    N5 = ('KC_5', '5', '%')
    N6 = ('KC_6', '6', '^')
    N7 = ('KC_7', '7', '&')
    N8 = ('KC_8', '8', '*')
    N9 = ('KC_9', '9', '(')

    COMMA = ('KC_COMM', ',', '<')
    DOT = ('KC_DOT', '.', '>')
    QUOTE = ('KC_QUOT', "'", '@')
    SEMICOLON = ('KC_SCLN', ';', ':')
    BACKSLASH = ('KC_NUBS', '\\', '|')
    SLASH = ('KC_SLSH', '/', '?')
    LEFT_BRACKET = ('KC_LBRC', '[', '{')
    RIGHT_BRACKET = ('KC_RBRC', ']', '}')
    HASH = ('KC_NUHS', '#', '~')
    GRAVE = ('KC_GRV', '`', '¬')
    MINUS = ('KC_MINS', '-', '_')
    EQUAL = ('KC_EQL', '=', '+')

    SPACE = ('KC_SPC', ' ', ' ')
    ENTER = ('KC_ENT', '\n', '\n')
    TAB = ('KC_TAB', '\t', '\t')

    @property
    def token(self) -> str:
        return self.value[0]

    def char(self, shifted: bool) -> str:
        '''Return the character this key types with or without shift.'''
        return self.value[2] if shifted else self.value[1]

    @classmethod
    def from_token(cls, token: str) -> 'KeyCode':
        try:
            return _CODE_BY_TOKEN[token]
        except KeyError:
            raise UnknownValue(token) from None


_CODE_BY_TOKEN = {code.token: code for code in KeyCode}

HOMING = (KeyCode.F, KeyCode.J, KeyCode.T, KeyCode.N, KeyCode.U, KeyCode.H, KeyCode.SPACE)


class Key:
    '''
    Base of the key roles a layout slot can hold.
    '''
    __slots__ = ()

    def typed_char(self, shifted: bool) -> str | None:
        return None

    @classmethod
    def from_token(cls, token: str) -> 'Key':
        '''
        Parse a firmware keycode token (KC_X, LSFT(KC_X), KC_NO, OSM(MOD_LSFT), OSL(n)).
        '''
        if token == 'KC_NO':
            return EMPTY
        if token == 'OSM(MOD_LSFT)':
            return SHIFT
        match = _TOKEN_RE.match(token)
        if match is None:
            return TypingKey(KeyCode.from_token(token))
        if match.group('shifted') is not None:
            return ShiftedKey(KeyCode.from_token(match.group('shifted')))
        return LayerKey(int(match.group('layer')))


_TOKEN_RE = re.compile(r'^(?:LSFT\((?P<shifted>[^()]+)\)|OSL\((?P<layer>\d+)\))$')


@dataclass(frozen=True, slots=True)
class TypingKey(Key):
    code: KeyCode

    def typed_char(self, shifted: bool) -> str | None:
        return self.code.char(shifted)

    def __str__(self) -> str:
        return self.code.token


@dataclass(frozen=True, slots=True)
class ShiftedKey(Key):
    '''Always types the shifted character of its code.'''
    code: KeyCode

    def typed_char(self, shifted: bool) -> str | None:
        return self.code.char(True)

    def __str__(self) -> str:
        return f'LSFT({self.code.token})'


@dataclass(frozen=True, slots=True)
class EmptyKey(Key):
    def __str__(self) -> str:
        return 'KC_NO'


@dataclass(frozen=True, slots=True)
class ShiftKey(Key):
    def __str__(self) -> str:
        return 'OSM(MOD_LSFT)'


@dataclass(frozen=True, slots=True)
class LayerKey(Key):
    layer: int

    def __str__(self) -> str:
        return f'OSL({self.layer})'


EMPTY = EmptyKey()
SHIFT = ShiftKey()


def _display(key: Key) -> str:
    if isinstance(key, TypingKey):
        char = key.code.char(False)
    elif isinstance(key, ShiftedKey):
        char = key.code.char(True)
    elif isinstance(key, LayerKey):
        return f'L{key.layer}'
    elif isinstance(key, ShiftKey):
        return '⇧'
    else:
        return '·'
    return {' ': '␣', '\n': '⏎', '\t': '⇥'}.get(char, char)


class Layout:
    '''
    An ordered list of layers of NUM_KEYS keys. Layer 0 is the home layer.

    Nothing structural is validated here; a layout that cannot reach some characters
    or that places layer keys off the home layer is still a Layout.
    '''
    def __init__(self, layers: list[list[Key]]):
        self.layers = [list(layer) for layer in layers]

    def __len__(self) -> int:
        return len(self.layers)

    def __getitem__(self, layer: int) -> list[Key]:
        return self.layers[layer]

    def __iter__(self):
        return iter(self.layers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Layout):
            return NotImplemented
        return self.layers == other.layers

    def __repr__(self) -> str:
        return f"Layout(layers={len(self.layers)})"

    def __str__(self) -> str:
        '''
        Show each layer as a 3x10 grid with the four thumb keys underneath.
        '''
        blocks = []
        for n, layer in enumerate(self.layers):
            lines = [f'layer {n}:']
            for row in range(3):
                cells = [_display(layer[row * 10 + col]) for col in range(10)]
                lines.append(' '.join(cells[:5]) + '   ' + ' '.join(cells[5:]))
            thumbs = [_display(layer[pos]) for pos in range(30, NUM_KEYS)]
            lines.append('      ' + ' '.join(thumbs[:2]) + '   ' + ' '.join(thumbs[2:]))
            blocks.append('\n'.join(lines))
        return '\n\n'.join(blocks)

    def copy(self) -> 'Layout':
        return Layout(copy.copy(self.layers))

    def hamming_dist(self, other: 'Layout') -> int:
        '''Number of (layer, position) slots holding different keys.'''
        if len(self) != len(other):
            raise ValueError(f"Cannot compare layouts with {len(self)} and {len(other)} layers")
        return sum(
            a != b
            for layer, other_layer in zip(self.layers, other.layers)
            for a, b in zip(layer, other_layer)
        )

    def to_json(self) -> dict:
        return {
            'keyboard': KEYBOARD_NAME,
            'keymap': KEYMAP_NAME,
            'layout': LAYOUT_NAME,
            'layers': [[str(key) for key in layer] for layer in self.layers],
        }

    @classmethod
    def from_json(cls, data: object) -> 'Layout':
        """
        Decode a parsed layout file.

        Parameters
        ----------
        data : object
            The parsed JSON document.

        Returns
        -------
        Layout
            The decoded layout.

        Raises
        ------
        LayoutParseError
            One of UnknownValue, MissingValue, WrongType, WrongLength or WrongValue.
            Decoding is all or nothing.
        """
        if not isinstance(data, dict):
            raise WrongType('object', data)
        for field, expected in (('keyboard', KEYBOARD_NAME), ('layout', LAYOUT_NAME)):
            if field not in data:
                raise MissingValue(field)
            if data[field] != expected:
                raise WrongValue(expected, data[field])
        if 'layers' not in data:
            raise MissingValue('layers')

        layers_data = data['layers']
        if not isinstance(layers_data, list):
            raise WrongType('array', layers_data)

        layers = []
        for layer_data in layers_data:
            if not isinstance(layer_data, list):
                raise WrongType('array', layer_data)
            if len(layer_data) != NUM_KEYS:
                raise WrongLength(NUM_KEYS, len(layer_data))
            layer = []
            for token in layer_data:
                if not isinstance(token, str):
                    raise WrongType('string', token)
                layer.append(Key.from_token(token))
            layers.append(layer)
        return cls(layers)

    @classmethod
    def loads(cls, text: str) -> 'Layout':
        return cls.from_json(json.loads(text))

    def dumps(self) -> str:
        return json.dumps(self.to_json(), indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: str | os.PathLike) -> 'Layout':
        with open(path, 'r', encoding='utf-8') as file:
            return cls.loads(file.read())

    def save(self, path: str | os.PathLike) -> None:
        with open(path, 'w', encoding='utf-8') as file:
            file.write(self.dumps())
            file.write('\n')

    @classmethod
    def from_name(cls, name: str) -> 'Layout':
        '''Load a layout by name from ``layouts/``.'''
        return cls.load(os.path.join(LAYOUTS_DIR, f'{name}.json'))


LAYOUTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'layouts')
