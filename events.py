'''
Turn text into the stream of hardware actions needed to type it on an AnnotatedLayout.

`keys` synthesizes taps, holds and releases of the one-shot layer and shift keys;
`oneshot` then rewrites holds that only guard a single keystroke into plain taps.
'''

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator

from annotated_layout import AnnotatedLayout, LayoutInvariantError
from layout import EmptyKey, LayerKey, Layout, ShiftedKey, ShiftKey, TypingKey


class TypingEvent:
    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Tap(TypingEvent):
    '''Press and release the key at pos; for_char is False when the tap only arms a one-shot modifier.'''
    pos: int
    for_char: bool = True


@dataclass(frozen=True, slots=True)
class Hold(TypingEvent):
    pos: int


@dataclass(frozen=True, slots=True)
class Release(TypingEvent):
    pos: int


@dataclass(frozen=True, slots=True)
class Unknown(TypingEvent):
    '''A character the layout cannot type.'''


class Lookahead:
    '''
    A forward-only event stream that can look at, and delete, events ahead of the current one.

    Subclasses produce events by implementing `_fill`, which appends at least one
    event to `self.buffer` and returns True, or returns False once exhausted.
    '''
    def __init__(self):
        self.buffer = deque()

    def _fill(self) -> bool:
        raise NotImplementedError

    def _extend_to(self, n: int) -> bool:
        while len(self.buffer) <= n:
            if not self._fill():
                return False
        return True

    def peek_nth(self, n: int) -> TypingEvent | None:
        '''Return the nth upcoming event without consuming anything, or None past the end.'''
        if not self._extend_to(n):
            return None
        return self.buffer[n]

    def remove_nth(self, n: int) -> TypingEvent | None:
        '''Delete the nth upcoming event, keeping the order of the rest.'''
        if not self._extend_to(n):
            return None
        event = self.buffer[n]
        del self.buffer[n]
        return event

    def __iter__(self) -> Iterator[TypingEvent]:
        return self

    def __next__(self) -> TypingEvent:
        if not self._extend_to(0):
            raise StopIteration
        return self.buffer.popleft()


class _IterLookahead(Lookahead):
    def __init__(self, iterable: Iterable[TypingEvent]):
        super().__init__()
        self.source = iter(iterable)

    def _fill(self) -> bool:
        try:
            self.buffer.append(next(self.source))
        except StopIteration:
            return False
        return True


def lookahead(events: Iterable[TypingEvent]) -> Lookahead:
    '''Wrap any event iterable in the peek_nth / remove_nth contract.'''
    if isinstance(events, Lookahead):
        return events
    return _IterLookahead(events)


class Keys(Lookahead):
    '''
    Lazy stream of the events that type `chars` on `layout`.
    '''
    def __init__(self, layout: AnnotatedLayout, chars: Iterable[str]):
        super().__init__()
        self.layout = layout
        self.chars = iter(chars)
        self.cur_layer = 0
        self.cur_shifted = False
        self.done = False

    def _release_layer(self) -> None:
        if self.cur_layer != 0:
            self.buffer.append(Release(self.layout.layer_idx[self.cur_layer]))
            self.cur_layer = 0

    def _release_shift(self) -> None:
        if self.cur_shifted:
            self.buffer.append(Release(self.layout.shift_idx))
            self.cur_shifted = False

    def _fill(self) -> bool:
        if self.done:
            return False

        char = next(self.chars, None)
        if char is None:
            self.done = True
            buffered = len(self.buffer)
            self._release_layer()
            self._release_shift()
            return len(self.buffer) > buffered

        entry = self.layout.preferred(char)
        if entry is None:
            self._release_layer()
            self._release_shift()
            self.buffer.append(Unknown())
            return True

        if self.cur_layer != 0 and entry.layer != self.cur_layer:
            self._release_layer()
        if self.cur_shifted and not entry.shifted:
            self._release_shift()
        if entry.shifted and not self.cur_shifted:
            # shift lives on the home layer
            self._release_layer()
            self.buffer.append(Hold(self.layout.shift_idx))
            self.cur_shifted = True
        if entry.layer != 0 and self.cur_layer != entry.layer:
            self.buffer.append(Hold(self.layout.layer_idx[entry.layer]))
            self.cur_layer = entry.layer

        self.buffer.append(Tap(entry.pos))
        return True


def keys(layout: AnnotatedLayout, chars: Iterable[str]) -> Keys:
    return Keys(layout, chars)


def oneshot(events: Iterable[TypingEvent]) -> Iterator[TypingEvent]:
    """
    Compress holds of one-shot modifiers.

    A Hold(k) ... Release(k) bracket around exactly one keystroke becomes a single
    Tap(k, for_char=False); a bracket around no keystrokes is dropped; a bracket
    around two or more keystrokes is kept.

    Raises
    ------
    LayoutInvariantError
        If a Hold is never released.
    """
    events = lookahead(events)
    for event in events:
        if not isinstance(event, Hold):
            yield event
            continue

        uses = 0
        i = 0
        while True:
            ahead = events.peek_nth(i)
            if ahead is None:
                raise LayoutInvariantError(f"key {event.pos} held but not released")
            if isinstance(ahead, (Tap, Unknown)):
                uses += 1
            elif isinstance(ahead, Release) and ahead.pos == event.pos:
                if uses > 1:
                    # the release stays in the stream
                    yield event
                else:
                    events.remove_nth(i)
                    if uses == 1:
                        yield Tap(event.pos, for_char=False)
                break
            i += 1


class _ModifierState:
    '''A layer or shift setting that is either held or armed for the next keystroke.'''
    __slots__ = ('default', 'value', 'oneshot')

    def __init__(self, default):
        self.default = default
        self.value = default
        self.oneshot = False

    def hold(self, value) -> None:
        self.value = value
        self.oneshot = False

    def arm(self, value) -> None:
        self.value = value
        self.oneshot = True

    def reset(self) -> None:
        self.value = self.default
        self.oneshot = False

    def finish_oneshot(self) -> None:
        if self.oneshot:
            self.reset()


def replay(layout: Layout, events: Iterable[TypingEvent]) -> Iterator[str]:
    '''
    Type an event stream on layout, yielding the characters it produces.
    '''
    layer = _ModifierState(0)
    shift = _ModifierState(False)

    def finish_oneshot():
        layer.finish_oneshot()
        shift.finish_oneshot()

    for event in events:
        if isinstance(event, Tap):
            key = layout[layer.value][event.pos]
            if isinstance(key, LayerKey):
                layer.arm(key.layer)
            elif isinstance(key, ShiftKey):
                shift.arm(True)
            elif isinstance(key, ShiftedKey):
                finish_oneshot()
                yield key.typed_char(True)
            elif isinstance(key, TypingKey):
                char = key.typed_char(shift.value)
                finish_oneshot()
                yield char
            elif isinstance(key, EmptyKey):
                finish_oneshot()
        elif isinstance(event, Hold):
            key = layout[layer.value][event.pos]
            if isinstance(key, LayerKey):
                layer.hold(key.layer)
            elif isinstance(key, ShiftKey):
                shift.hold(True)
        elif isinstance(event, Release):
            key = layout[0][event.pos]
            if isinstance(key, LayerKey):
                layer.reset()
            elif isinstance(key, ShiftKey):
                shift.reset()
        else:
            finish_oneshot()
