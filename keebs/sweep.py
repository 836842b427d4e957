r'''
Ferris Sweep hardware: 34 keys in 3 rows of 10 columns plus two thumb keys per hand.

Positions are numbered row * 10 + col, so the thumbs are 30, 31 (left) and 32, 33 (right).

sweep:
 0 1 2 3 3   6 6 7 8 9
 0 1 2 3 3   6 6 7 8 9
 0 1 2 3 3   6 6 7 8 9
       4 4   5 5
'''

from hardware import KeyboardHardware, Position, THUMB_ROW, finger_for_pos

# key pitch in millimeters
HORIZ_SEP = 18
VERT_SEP = 17

is_home = {
    (1,0): True,
    (1,1): True,
    (1,2): True,
    (1,3): True,
    (1,6): True,
    (1,7): True,
    (1,8): True,
    (1,9): True,
    (3,1): True,
    (3,2): True,
}

# thumb keys sit under the inner columns of each half
thumb_x_col = {0: 3, 1: 4, 2: 5, 3: 6}


def sweep_hardware(name: str) -> KeyboardHardware:
    '''Creates KeyboardHardware with the 34 positions of a split 3x5+2 board'''
    positions = [
        Position(
            row=row,
            col=col,
            x=col * HORIZ_SEP,
            y=row * VERT_SEP,
            finger=finger_for_pos(row, col),
            is_home=is_home.get((row, col), False)
        )
        for row in range(THUMB_ROW)
        for col in range(10)
    ]
    positions += [
        Position(
            row=THUMB_ROW,
            col=col,
            x=thumb_x_col[col] * HORIZ_SEP,
            y=THUMB_ROW * VERT_SEP,
            finger=finger_for_pos(THUMB_ROW, col),
            is_home=is_home.get((THUMB_ROW, col), False)
        )
        for col in range(4)
    ]
    return KeyboardHardware(name=name, positions=positions)


KEYBOARD = sweep_hardware('sweep')

if __name__ == "__main__":
    print(KEYBOARD.str(show_finger_numbers=True))
