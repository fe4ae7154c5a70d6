"""
Deferred multi-key sorting for iterables.

`sort_by` wraps any iterable in a `SortBy` adapter. Nothing is read from the
source until the first element is requested; at that point the source is
drained, stably sorted with the composed key chain, and served one element at
a time. Extra tie-break keys are added with `then_sort_by` /
`then_sort_by_desc` before consumption starts.

    people = sort_by_desc(rows, lambda p: p.age).then_sort_by(lambda p: p.name)
    for person in people:
        ...
"""

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

KeyFn = Callable[[Any], Any]


class SortByError(RuntimeError):
    """Base class for adapter misuse"""


class AlreadyStagedError(SortByError):
    """Raised when a key is added after the adapter started producing output"""


class SupersededAdapterError(SortByError):
    """Raised when an adapter is used after a newer one took over its state"""


def _order(a, b) -> int:
    # Only `<` is consulted; incomparable pairs (NaN, Decimal NaN, mixed types) count as equal.
    try:
        if a < b:
            return -1
        if b < a:
            return 1
    except (TypeError, ArithmeticError):
        logger.debug("Incomparable keys %r and %r treated as equal", a, b)
    return 0


@dataclass(frozen=True)
class SortKey:
    """One ordering criterion: a key extractor and its direction"""
    key_fn: KeyFn
    ascending: bool = True

    def compare(self, a, b) -> int:
        if self.ascending:
            return _order(self.key_fn(a), self.key_fn(b))
        return _order(self.key_fn(b), self.key_fn(a))


class KeyChain:
    """
    Ordered sequence of sort keys evaluated with early exit.

    The first key that tells two elements apart decides their order; if every
    key reports equal, the elements are equal and a stable sort keeps them in
    arrival order.
    """

    def __init__(self, keys: Iterable[SortKey] = ()):
        self._keys: Tuple[SortKey, ...] = tuple(keys)

    @property
    def keys(self) -> Tuple[SortKey, ...]:
        return self._keys

    def __len__(self):
        return len(self._keys)

    def __repr__(self):
        directions = ", ".join("asc" if k.ascending else "desc" for k in self._keys)
        return f"KeyChain([{directions}])"

    def then(self, key: SortKey) -> "KeyChain":
        return KeyChain(self._keys + (key,))

    def compare(self, a, b) -> int:
        for key in self._keys:
            result = key.compare(a, b)
            if result:
                return result
        return 0

    def sort(self, buffer: List[Any]) -> None:
        """Sort `buffer` in place; list.sort is stable"""
        buffer.sort(key=cmp_to_key(self.compare))


@dataclass
class _Unstaged:
    source: Iterator[Any]


@dataclass
class _Staged:
    buffer: List[Any]
    cursor: int = 0

    def remaining(self) -> List[Any]:
        rest = self.buffer[self.cursor:]
        self.cursor = len(self.buffer)
        return rest


class SortBy:
    """
    Iterator that sorts its source on first use.

    The adapter is either unstaged (it owns the source iterator) or staged
    (it owns the sorted buffer and a cursor). Staging happens once, on the
    first `next()` or `to_list()` call, and is never undone.
    """

    def __init__(self, source: Iterable[Any], chain: KeyChain):
        self._stage: Optional[Any] = _Unstaged(iter(source))
        self._chain = chain

    # --------- key composition (before consumption) ----------
    def then_sort_by(self, key_fn: KeyFn, ascending: bool = True) -> "SortBy":
        """Add a tie-break key, consulted only when all earlier keys are equal"""
        return self._extend(SortKey(key_fn, ascending))

    def then_sort_by_desc(self, key_fn: KeyFn) -> "SortBy":
        return self._extend(SortKey(key_fn, ascending=False))

    # --------- introspection ----------
    @property
    def staged(self) -> bool:
        return isinstance(self._live_stage(), _Staged)

    @property
    def keys(self) -> Tuple[SortKey, ...]:
        return self._chain.keys

    def __repr__(self):
        if self._stage is None:
            state = "superseded"
        elif isinstance(self._stage, _Staged):
            state = f"staged {self._stage.cursor}/{len(self._stage.buffer)}"
        else:
            state = "unstaged"
        return f"<SortBy {state} {self._chain!r}>"

    # --------- consumption ----------
    def __iter__(self):
        return self

    def __next__(self):
        stage = self._live_stage()
        if isinstance(stage, _Unstaged):
            stage = self._stage_now()
        if stage.cursor >= len(stage.buffer):
            raise StopIteration
        item = stage.buffer[stage.cursor]
        stage.buffer[stage.cursor] = None
        stage.cursor += 1
        return item

    def to_list(self) -> List[Any]:
        """
        Return the sorted elements as a list.

        An unstaged adapter hands over its sorted buffer directly. After some
        elements were pulled, only the ones not yet pulled are returned.
        Either way the adapter is exhausted afterwards.
        """
        stage = self._live_stage()
        if isinstance(stage, _Unstaged):
            buffer = self._stage_now().buffer
            self._staged_state().buffer = []
            return buffer
        return stage.remaining()

    # --------- helpers ----------
    def _extend(self, key: SortKey) -> "SortBy":
        stage = self._live_stage()
        if isinstance(stage, _Staged):
            raise AlreadyStagedError(
                "Cannot add a sort key after the adapter started producing elements"
            )
        successor = SortBy.__new__(SortBy)
        successor._stage = stage
        successor._chain = self._chain.then(key)
        self._stage = None
        return successor

    def _live_stage(self):
        if self._stage is None:
            raise SupersededAdapterError(
                "This adapter was replaced by a then_sort_by call; use the returned adapter"
            )
        return self._stage

    def _unstaged_state(self) -> _Unstaged:
        if not isinstance(self._stage, _Unstaged):
            raise AssertionError(f"expected an unstaged adapter, got {self._stage!r}")
        return self._stage

    def _staged_state(self) -> _Staged:
        if not isinstance(self._stage, _Staged):
            raise AssertionError(f"expected a staged adapter, got {self._stage!r}")
        return self._stage

    def _stage_now(self) -> _Staged:
        source = self._unstaged_state().source
        # The source cannot be replayed, so a failure below leaves us exhausted.
        self._stage = _Staged([])
        buffer = list(source)
        self._chain.sort(buffer)
        self._stage = _Staged(buffer)
        logger.debug("Staged %d elements with %d sort key(s)", len(buffer), len(self._chain))
        return self._stage


def sort_by(source: Iterable[Any], key_fn: KeyFn, ascending: bool = True) -> SortBy:
    """Wrap `source` in a lazy adapter ordered by `key_fn`"""
    return SortBy(source, KeyChain([SortKey(key_fn, ascending)]))


def sort_by_desc(source: Iterable[Any], key_fn: KeyFn) -> SortBy:
    """Like `sort_by`, with `key_fn` in descending order"""
    return sort_by(source, key_fn, ascending=False)
