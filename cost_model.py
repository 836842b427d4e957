'''
The cost model interface shared by the optimizer and the cost implementations in costs/.
'''

import importlib
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from annotated_layout import AnnotatedLayout
from events import TypingEvent, keys, oneshot
from hardware import KeyboardHardware

KEYBOARD = KeyboardHardware.from_name('sweep')


def log_norm(x: int) -> int:
    '''
    Integer log2 of x + 1, rounded down, so that 0 and 1 stay distinct.
    '''
    return (x + 1).bit_length() - 1


class CostModel(ABC):
    """
    Estimate the effort of typing a corpus on a layout.

    Subclasses implement `cost_of_typing`, which costs one stream of typing events,
    and `layout_cost`, a static penalty on the layout itself.
    """
    name = ''

    @abstractmethod
    def cost_of_typing(self, events: Iterable[TypingEvent]) -> tuple[float, int]:
        """
        Cost an event stream.

        Returns
        -------
        tuple[float, int]
            The total cost and the number of taps that typed a character.
        """

    @abstractmethod
    def layout_cost(self, layout: AnnotatedLayout) -> float:
        ...

    def string_cost(self, layout: AnnotatedLayout, string: str) -> tuple[float, int]:
        return self.cost_of_typing(oneshot(keys(layout, string)))

    def cost(self, corpus: Sequence[str], layout: AnnotatedLayout) -> float:
        '''
        Average typing cost per character over the corpus, plus the layout cost.
        '''
        total_cost = 0.0
        total_count = 0
        for string in corpus:
            cost, count = self.string_cost(layout, string)
            total_cost += cost
            total_count += count
        typing_cost = total_cost / total_count if total_count else 0.0
        return typing_cost + self.layout_cost(layout)


def from_name(name: str) -> CostModel:
    """
    Create a cost model by name.

    Parameters
    ----------
    name : str
        The name of a module in the costs directory: heuristic, measured or simple.

    Returns
    -------
    CostModel
        A new instance of the module's MODEL class.
    """
    try:
        module = importlib.import_module('costs.' + name)
    except ModuleNotFoundError as exc:
        if exc.name != 'costs.' + name:
            raise
        raise ValueError(f"Unknown cost model: {name}") from None
    return module.MODEL()
