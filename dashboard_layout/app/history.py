from dataclasses import dataclass
from typing import Generic, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class HistoryState(Generic[T]):
    past: Tuple[T, ...]
    present: T
    future: Tuple[T, ...]


class HistoryManager:
    """
    Bounded past/present/future stack.

    All methods return a new HistoryState; the input is never modified.
    A push after an undo discards the whole future (no branching).
    """

    def __init__(self, max_size: int = 50):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size

    @staticmethod
    def initial(present: T) -> HistoryState:
        return HistoryState(past=(), present=present, future=())

    def push(self, state: HistoryState, present: T) -> HistoryState:
        past = (state.past + (state.present,))[-self.max_size:]
        return HistoryState(past=past, present=present, future=())

    def undo(self, state: HistoryState) -> HistoryState:
        if not state.past:
            return state
        future = ((state.present,) + state.future)[:self.max_size]
        return HistoryState(past=state.past[:-1], present=state.past[-1], future=future)

    def redo(self, state: HistoryState) -> HistoryState:
        if not state.future:
            return state
        past = (state.past + (state.present,))[-self.max_size:]
        return HistoryState(past=past, present=state.future[0], future=state.future[1:])

    @staticmethod
    def can_undo(state: HistoryState) -> bool:
        return len(state.past) > 0

    @staticmethod
    def can_redo(state: HistoryState) -> bool:
        return len(state.future) > 0
