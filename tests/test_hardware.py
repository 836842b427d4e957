import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hardware import Finger, FingerType, Hand, KeyboardHardware, Position, finger_for_pos


def test_sweep_has_34_positions():
    hw = KeyboardHardware.from_name('sweep')
    assert hw.name == 'sweep'
    assert len(hw) == 34
    assert [position.index for position in hw.positions] == list(range(34))


def test_finger_assignment():
    hw = KeyboardHardware.from_name('sweep')
    assert hw[0].finger == Finger.LP
    assert hw[4].finger == Finger.LI
    assert hw[5].finger == Finger.RI
    assert hw[19].finger == Finger.RP
    assert [hw[pos].finger for pos in range(30, 34)] == [Finger.LT, Finger.LT, Finger.RT, Finger.RT]


def test_home_positions():
    hw = KeyboardHardware.from_name('sweep')
    homes = {finger: position.index for finger, position in hw.home_position.items()}
    assert homes == {
        Finger.LP: 10, Finger.LR: 11, Finger.LM: 12, Finger.LI: 13,
        Finger.RI: 16, Finger.RM: 17, Finger.RR: 18, Finger.RP: 19,
        Finger.LT: 31, Finger.RT: 32,
    }


def test_finger_hand_and_type():
    assert Finger.LT.hand == Hand.LEFT
    assert Finger.RP.hand == Hand.RIGHT
    assert Finger.RT.type() == FingerType.THUMB
    assert Finger.RP.type() == FingerType.PINKY
    assert Finger.LI.type() == FingerType.INDEX


def test_finger_for_pos_thumbs():
    assert finger_for_pos(3, 0) == Finger.LT
    assert finger_for_pos(3, 3) == Finger.RT


def test_out_of_sequence_positions_rejected():
    positions = [
        Position(row=0, col=0, x=0.0, y=0.0, finger=Finger.LP),
        Position(row=0, col=2, x=2.0, y=0.0, finger=Finger.LM),
    ]
    with pytest.raises(ValueError):
        KeyboardHardware("gap", positions)


def test_str_shows_every_key():
    hw = KeyboardHardware.from_name('sweep')
    text = hw.str(show_finger_numbers=True)
    assert len(text.splitlines()) == 4
    assert sum(ch.isdigit() for ch in text) == 34
