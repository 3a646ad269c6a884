"""Tests for coordinate sequence assignment, reordering and path validation."""

import pytest

from factories import make_point
from pipeline_topology import sequencer
from pipeline_topology.issues import IssueCode


def _sequences(points):
    return [(p.id, p.sequence) for p in points]


class TestNextSequence:
    def test_empty_path_starts_at_one(self):
        assert sequencer.next_sequence([]) == 1

    def test_max_plus_one(self):
        points = [make_point(1, 1), make_point(2, 7), make_point(3, 3)]
        assert sequencer.next_sequence(points) == 8


class TestReorder:
    def setup_method(self):
        self.points = [make_point(i, i) for i in range(1, 5)]

    def test_moves_point_and_renumbers_densely(self):
        result = sequencer.reorder(self.points, moved_id=4, new_index=0)
        assert _sequences(result) == [(4, 1), (1, 2), (2, 3), (3, 4)]

    def test_is_idempotent_for_same_target(self):
        once = sequencer.reorder(self.points, moved_id=1, new_index=2)
        twice = sequencer.reorder(once, moved_id=1, new_index=2)
        assert _sequences(once) == _sequences(twice)

    def test_index_is_clamped(self):
        result = sequencer.reorder(self.points, moved_id=1, new_index=99)
        assert _sequences(result) == [(2, 1), (3, 2), (4, 3), (1, 4)]

    def test_does_not_mutate_input(self):
        sequencer.reorder(self.points, moved_id=4, new_index=0)
        assert _sequences(self.points) == [(1, 1), (2, 2), (3, 3), (4, 4)]

    def test_closes_holes_in_numbering(self):
        points = [make_point(1, 2), make_point(2, 5), make_point(3, 9)]
        result = sequencer.reorder(points, moved_id=2, new_index=1)
        assert _sequences(result) == [(1, 1), (2, 2), (3, 3)]

    def test_unknown_point_raises(self):
        with pytest.raises(KeyError):
            sequencer.reorder(self.points, moved_id=42, new_index=0)


class TestInsertRemove:
    def test_insert_in_the_middle_shifts_later_points(self):
        points = [make_point(1, 1), make_point(2, 2)]
        new = make_point(None, 3)
        result = sequencer.insert(points, new, index=1)
        assert _sequences(result) == [(1, 1), (None, 2), (2, 3)]
        assert [p.id for p in sequencer.changed(points, result)] == [None, 2]

    def test_remove_renumbers_following_points(self):
        points = [make_point(i, i) for i in range(1, 4)]
        result = sequencer.remove(points, 2)
        assert _sequences(result) == [(1, 1), (3, 2)]
        assert [p.id for p in sequencer.changed(points, result)] == [3]


class TestValidate:
    def test_duplicate_sequence_fails(self):
        points = [make_point(1, 1), make_point(2, 1), make_point(3, 3)]
        result = sequencer.validate(points)
        assert not result.valid
        assert result.errors[0].code is IssueCode.DUPLICATE_SEQUENCE
        assert result.errors[0].sequences == [1]

    def test_contiguous_path_is_valid(self):
        result = sequencer.validate([make_point(1, 1), make_point(2, 2)], finalized=True)
        assert result.valid
        assert result.issues == []

    def test_short_path_is_a_warning_until_finalized(self):
        points = [make_point(1, 1)]
        draft = sequencer.validate(points)
        assert draft.valid
        assert draft.has(IssueCode.INCOMPLETE_PATH)

        final = sequencer.validate(points, finalized=True)
        assert not final.valid
        assert final.has(IssueCode.EMPTY_PATH)

    def test_hole_in_numbering_is_reported_as_warning(self):
        result = sequencer.validate([make_point(1, 1), make_point(2, 3)])
        assert result.valid
        assert result.warnings[0].code is IssueCode.SEQUENCE_GAP
        assert result.warnings[0].sequences == [2]

    def test_hole_in_numbering_blocks_finalize(self):
        result = sequencer.validate([make_point(1, 1), make_point(2, 3)], finalized=True)
        assert not result.valid
        assert result.errors[0].code is IssueCode.SEQUENCE_GAP
