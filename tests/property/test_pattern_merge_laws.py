"""Property tests: pattern merging is associative and commutative.

Costs are drawn in whole cents, the precision detections are held at,
so the grouping of merges cannot change a total.
"""

from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st

from journal_analytics.core.enums import PatternType
from journal_analytics.core.models import DetectedPattern
from journal_analytics.journal.patterns import merge_patterns

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


@st.composite
def _pattern(draw):
    start = draw(st.integers(min_value=0, max_value=365))
    span = draw(st.integers(min_value=0, max_value=30))
    return DetectedPattern(
        type=draw(st.sampled_from(list(PatternType))),
        occurrences=draw(st.integers(min_value=0, max_value=50)),
        total_cost=float(draw(st.decimals(
            min_value=-100_000, max_value=100_000, places=2,
            allow_nan=False, allow_infinity=False,
        ))),
        description=draw(st.sampled_from(["", "a", "b"])),
        first_detected=_EPOCH + timedelta(days=start),
        last_detected=_EPOCH + timedelta(days=start + span),
        affected_trade_ids=frozenset(draw(st.sets(st.text(min_size=1, max_size=4), max_size=5))),
    )


batches = st.lists(_pattern(), max_size=8)


@given(a=batches, b=batches)
@settings(max_examples=100)
def test_commutative(a, b):
    assert merge_patterns(a, b) == merge_patterns(b, a)


@given(a=batches, b=batches, c=batches)
@settings(max_examples=100)
def test_associative(a, b, c):
    left = merge_patterns(merge_patterns(a, b), c)
    right = merge_patterns(a, merge_patterns(b, c))
    assert left == right == merge_patterns(a, b, c)


@given(a=batches)
@settings(max_examples=50)
def test_empty_is_identity(a):
    assert merge_patterns(a, []) == merge_patterns(a)


@given(a=batches)
@settings(max_examples=50)
def test_one_entry_per_type(a):
    merged = merge_patterns(a)
    types = [p.type for p in merged]
    assert len(types) == len(set(types))
    assert sum(p.occurrences for p in merged) == sum(p.occurrences for p in a)
