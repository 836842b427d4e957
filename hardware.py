'''
These classes define the physical attributes of keyboard hardware
'''

from dataclasses import dataclass
from enum import Enum, unique
from typing import List
from collections import defaultdict
import importlib

@unique
class Hand(Enum):
    """
    Represent the hand of a keyboard user.
    """
    LEFT = 0
    RIGHT = 1

@unique
class FingerType(Enum):
    """
    Represent the type of a finger.
    """
    PINKY = 0
    RING = 1
    MIDDLE = 2
    INDEX = 3
    THUMB = 4

@unique
class Finger(Enum):
    """
    Represent the finger of a keyboard key.
    """
    LP = 0
    LR = 1
    LM = 2
    LI = 3
    LT = 4

    RT = 5
    RI = 6
    RM = 7
    RR = 8
    RP = 9

    @property
    def hand(self) -> Hand:
        """Return the hand that owns this finger."""
        return Hand(self.value // 5)

    def type(self) -> FingerType:
        """
        Return the type of the finger.
        """
        if self.value < 5:
            return FingerType(self.value)

        return FingerType(9 - self.value)


# columns 0..9 of the three main rows, left pinky to right pinky
COLUMN_FINGERS = (
    Finger.LP, Finger.LR, Finger.LM, Finger.LI, Finger.LI,
    Finger.RI, Finger.RI, Finger.RM, Finger.RR, Finger.RP,
)

THUMB_ROW = 3


def finger_for_pos(row: int, col: int) -> Finger:
    '''
    Return the finger that presses the key at (row, col) on a split 3x5+2 board.
    '''
    if row == THUMB_ROW:
        if col < 2:
            return Finger.LT
        return Finger.RT
    return COLUMN_FINGERS[col]


@dataclass(frozen=True)
class Position:
    """
    Represent the physical and logical position of a keyboard key.

    Attributes
    ----------
    row : int
        The logical row index of the key.
    col : int
        The logical column index of the key.
    x : float
        The X-coordinate of the key in millimeters.
    y : float
        The Y-coordinate of the key in millimeters.
    finger : Finger
        The finger assigned to press the key.
    is_home : bool
        Whether the finger rests on this key.
    """
    row: int
    col: int
    x: float
    y: float
    finger: Finger
    is_home: bool = False

    @property
    def index(self) -> int:
        '''position index used by layers and cost tables'''
        return self.row * 10 + self.col


class KeyboardHardware:
    """
    Represent the physical layout of a keyboard.

    Attributes
    ----------
    positions : List[Position]
        The positions of the keys on the keyboard, in position-index order.
    finger_to_positions : Dict[Finger, List[Position]]
        The positions of the keys assigned to each finger.
    home_position : Dict[Finger, Position]
        The resting key of each finger.
    """
    def __init__(self, name: str, positions: List[Position]):
        self.name = name
        self.positions = sorted(positions, key=lambda x: (x.row, x.col))

        for i, position in enumerate(self.positions):
            if position.index != i:
                raise ValueError(f"{name}: position {position.row},{position.col} is out of sequence at index {i}")

        self.finger_to_positions = defaultdict(list)
        self.home_position = {}
        self.grid = defaultdict(dict)
        for position in self.positions:
            self.finger_to_positions[position.finger].append(position)
            self.grid[position.row][position.col] = position
            if position.is_home:
                if position.finger in self.home_position:
                    raise ValueError(f"{name}: finger {position.finger.name} has two home positions")
                self.home_position[position.finger] = position

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, pos: int) -> Position:
        return self.positions[pos]

    @classmethod
    def from_name(cls, name: str) -> 'KeyboardHardware':
        """
        Create a KeyboardHardware instance from a name.

        Parameters
        ----------
        name : str
            The name of the keyboard hardware module in the keebs directory.

        Returns
        -------
        KeyboardHardware
            The keyboard hardware instance from the specified module.
        """
        module = importlib.import_module('keebs.' + name)
        return module.KEYBOARD

    def str(self, show_finger_numbers: bool = False, show_finger_names: bool = False) -> str:
        '''
        Show the keyboard layout in a human-readable format.

        Parameters
        ----------
        show_finger_numbers : bool
            Show the finger numbers.
        show_finger_names : bool
            Show the finger names.
        '''

        def _str_position(position: Position) -> str:
            s = ''
            if show_finger_numbers:
                s += f'{position.finger.value:1d}'
            if show_finger_names:
                s += f'{position.finger.name}'
            if not s:
                s = '.'
            return s

        lines = []
        for row in sorted(self.grid):
            cells = []
            prev = None
            for col in sorted(self.grid[row]):
                position = self.grid[row][col]
                if prev is not None and position.finger.hand != prev.finger.hand:
                    cells.append(' ')
                cells.append(_str_position(position))
                prev = position
            lines.append(' '.join(cells))
        return '\n'.join(lines)


if __name__ == "__main__":
    keyboard = KeyboardHardware.from_name('sweep')
    print(keyboard.str(show_finger_numbers=True))
    print()
    print(keyboard.str(show_finger_names=True))
