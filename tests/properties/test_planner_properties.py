"""Property tests for the chunk planner.

- Every setting lands in exactly one chunk
- Chunks respect the size bound unless flagged oversized
- Present members of a coupled group always share a chunk
- Free settings keep their input order
- Coupled chunks do not depend on input order
"""

import math

from hypothesis import given, settings
from hypothesis import strategies as st

from rds_params.coupling import ALL_GROUPS
from rds_params.planner import plan_chunks

from .strategies import chunk_sizes, setting_lists


def _bound_keys(items):
    """Keys of settings whose group has two or more members present."""
    keys = set()
    for group in ALL_GROUPS:
        present = [s.key for s in items if s.key in group.members]
        if len(present) > 1:
            keys.update(present)
    return keys


@given(items=setting_lists(), size=chunk_sizes)
@settings(max_examples=300)
def test_every_setting_planned_exactly_once(items, size):
    """Property: Chunks partition the input."""
    chunks = list(plan_chunks(items, size))
    planned = [s.key for c in chunks for s in c.settings]
    assert sorted(planned) == sorted(s.key for s in items)
    assert all(len(c) > 0 for c in chunks)


@given(items=setting_lists(), size=chunk_sizes)
@settings(max_examples=300)
def test_chunk_size_bound(items, size):
    """Property: Only a single oversized coupled group may exceed the chunk size."""
    for chunk in plan_chunks(items, size):
        if chunk.oversized:
            assert chunk.coupled
            assert len(chunk) > size
        else:
            assert len(chunk) <= size


@given(items=setting_lists(), size=chunk_sizes)
@settings(max_examples=300)
def test_coupled_members_share_a_chunk(items, size):
    """Property: A bound group is never split across chunks."""
    chunks = list(plan_chunks(items, size))
    for group in ALL_GROUPS:
        present = {s.key for s in items if s.key in group.members}
        if len(present) < 2:
            continue
        holding = [c for c in chunks if present & {s.key for s in c.settings}]
        assert len(holding) == 1
        assert holding[0].coupled
        assert present <= {s.key for s in holding[0].settings}


@given(items=setting_lists(), size=chunk_sizes)
@settings(max_examples=300)
def test_free_settings_keep_input_order(items, size):
    """Property: Free settings are packed in the order they were given."""
    bound = _bound_keys(items)
    expected = [s.key for s in items if s.key not in bound]
    free_chunks = [c for c in plan_chunks(items, size) if not c.coupled]
    assert [s.key for c in free_chunks for s in c.settings] == expected
    assert len(free_chunks) == math.ceil(len(expected) / size)


@given(data=st.data(), items=setting_lists(), size=chunk_sizes)
@settings(max_examples=200)
def test_coupled_chunks_independent_of_input_order(data, items, size):
    """Property: Shuffling the input does not change the coupled chunks."""
    shuffled = data.draw(st.permutations(items))

    def coupled(seq):
        return [c.names() for c in plan_chunks(seq, size) if c.coupled]

    assert coupled(items) == coupled(shuffled)


@given(items=setting_lists(), size=chunk_sizes)
@settings(max_examples=200)
def test_planning_is_deterministic(items, size):
    """Property: Same inputs always produce the same chunks."""
    assert list(plan_chunks(items, size)) == list(plan_chunks(items, size))
