import pytest
import time
from sortby import sort_by, sort_by_desc
from utils import CountingKey, validate_lazy_evaluation


class TestLazyStaging:
    """Test that sorting is deferred until the first pull"""

    def test_no_key_calls_before_first_pull(self):
        """Test that building and extending the adapter evaluates nothing"""
        key = CountingKey(lambda x: x)
        tie_break = CountingKey(lambda x: -x)

        adapter = sort_by([5, 2, 3, 2], key).then_sort_by(tie_break)
        assert key.count == 0, "Primary key should not run during definition"
        assert tie_break.count == 0, "Tie-break key should not run during definition"
        assert validate_lazy_evaluation(adapter), "Adapter should still be unstaged"

        assert next(adapter) == 2
        assert key.count > 0, "Staging should evaluate the primary key"
        assert not validate_lazy_evaluation(adapter)

    def test_key_calls_happen_after_construction(self):
        """Test that every recorded key call is timestamped after the first pull starts"""
        key = CountingKey(lambda x: x)
        adapter = sort_by([3, 1, 2], key)
        constructed_at = time.perf_counter()

        result = adapter.to_list()

        assert result == [1, 2, 3]
        assert key.calls, "Conversion should evaluate the key"
        assert all(t >= constructed_at for t in key.calls), "No key call may precede consumption"

    def test_source_not_read_before_first_pull(self):
        """Test that the upstream generator is only drained at staging time"""
        produced = []

        def source():
            for x in [4, 1, 3]:
                produced.append(x)
                yield x

        adapter = sort_by_desc(source(), lambda x: x)
        assert produced == [], "Source should not be touched during definition"

        assert next(adapter) == 4
        assert produced == [4, 1, 3], "First pull should drain the whole source"

    def test_staging_happens_once(self):
        """Test that later pulls are served from the buffer without new key calls"""
        key = CountingKey(lambda x: x)
        adapter = sort_by([9, 7, 8, 6], key)

        next(adapter)
        calls_after_staging = key.count
        rest = list(adapter)

        assert rest == [7, 8, 9]
        assert key.count == calls_after_staging, "Buffered pulls should not re-run keys"

    def test_tie_break_key_only_runs_on_ties(self):
        """Test early exit: the second key is never consulted without a tie"""
        tie_break = CountingKey(lambda x: x)
        result = sort_by([3, 1, 2], lambda x: x).then_sort_by(tie_break).to_list()

        assert result == [1, 2, 3]
        assert tie_break.count == 0, f"Tie-break key ran {tie_break.count} times without ties"


class TestEndOfSequence:
    """Test exhaustion behavior"""

    def test_repeated_pulls_after_exhaustion(self):
        """Test that an exhausted adapter keeps signalling end-of-sequence"""
        adapter = sort_by([2, 1], lambda x: x)
        assert list(adapter) == [1, 2]

        for _ in range(3):
            with pytest.raises(StopIteration):
                next(adapter)
        assert list(adapter) == [], "Exhausted adapter must not restart"

    def test_next_with_default(self):
        """Test the builtin next() default on an exhausted adapter"""
        adapter = sort_by([1], lambda x: x)
        assert next(adapter, None) == 1
        assert next(adapter, None) is None
        assert next(adapter, None) is None

    def test_empty_source(self):
        """Test that an empty source yields nothing for both pull and conversion"""
        key = CountingKey(lambda x: x)
        assert list(sort_by([], key)) == []
        assert sort_by([], key).to_list() == []
        assert sort_by_desc(iter(()), key).then_sort_by(key).to_list() == []
        assert key.count == 0
