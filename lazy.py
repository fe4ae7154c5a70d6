from sortby import sort_by, sort_by_desc


class LazyCollection:
    """
    A chainable, lazy pipeline over an iterable. Transformations are stored
    and applied only when you iterate; `sort_by` / `sort_by_desc` hand the
    pipeline to a deferred sort adapter.
    """
    def __init__(self, source, ops=None):
        self._source = source
        self._ops = ops or []          # sequence of ("op_name", callable/arg)

    # --------- chainable operators (lazy) ----------
    def map(self, fn):
        return self._with_op(("map", fn))

    def filter(self, pred):
        return self._with_op(("filter", pred))

    def skip(self, n):
        return self._with_op(("skip", self._count(n)))

    def take(self, n):
        return self._with_op(("take", self._count(n)))

    # --------- sorting (deferred until first pull) ----------
    def sort_by(self, key_fn, ascending=True):
        """Sort the pipeline output by key_fn; add tie-breaks with then_sort_by()"""
        return sort_by(self, key_fn, ascending)

    def sort_by_desc(self, key_fn):
        return sort_by_desc(self, key_fn)

    # --------- forcing evaluation ----------
    def to_list(self):
        return list(self)

    def first(self, default=None):
        """Return the first element, or default if empty"""
        for item in self:
            return item
        return default

    # --------- iterator protocol ----------
    def __iter__(self):
        it = iter(self._source)
        for op, arg in self._ops:
            if op == "map":
                it = map(arg, it)
            elif op == "filter":
                it = filter(arg, it)
            elif op == "skip":
                it = _skip(it, arg)
            elif op == "take":
                it = _take(it, arg)
            else:
                raise ValueError(f"Unknown op: {op}")
        yield from it

    # --------- helpers ----------
    def _with_op(self, op_tuple):
        return LazyCollection(self._source, self._ops + [op_tuple])

    @staticmethod
    def _count(n):
        n = int(n)
        if n < 0:
            raise ValueError("Count must be >= 0")
        return n


def _skip(gen, k):
    skipped = 0
    for x in gen:
        if skipped < k:
            skipped += 1
            continue
        yield x


def _take(gen, n):
    if n == 0:
        return
    taken = 0
    for x in gen:
        yield x
        taken += 1
        if taken >= n:
            return
