"""Sequence assignment and ordering for a segment's coordinate path.

All functions work on an in-memory working set and return new ``Coordinate``
copies; persisting the renumbered points is the caller's job.
"""

from collections import Counter
from collections.abc import Sequence

from .issues import IssueCode, SequenceIssue, Severity, ValidationResult
from .models import Coordinate

MIN_PATH_POINTS = 2


def next_sequence(points: Sequence[Coordinate]) -> int:
    """Sequence number for a point appended to the end of the path."""
    return max((p.sequence for p in points), default=0) + 1


def sort_by_sequence(points: Sequence[Coordinate]) -> list[Coordinate]:
    """Points in route order. Ties (duplicates) fall back to id for determinism."""
    return sorted(points, key=lambda p: (p.sequence, p.id is None, p.id or 0))


def _number(ordered: Sequence[Coordinate]) -> list[Coordinate]:
    return [
        p if p.sequence == i else p.model_copy(update={"sequence": i})
        for i, p in enumerate(ordered, start=1)
    ]


def _index_of(ordered: Sequence[Coordinate], point_id: int) -> int:
    for i, p in enumerate(ordered):
        if p.id == point_id:
            return i
    raise KeyError(f"Coordinate {point_id} is not part of this path")


def renumber(points: Sequence[Coordinate]) -> list[Coordinate]:
    """Dense ``1..n`` numbering in the current sequence order."""
    return _number(sort_by_sequence(points))


def reorder(points: Sequence[Coordinate], moved_id: int, new_index: int) -> list[Coordinate]:
    """Move one point to ``new_index`` (zero-based, clamped) and renumber densely."""
    ordered = sort_by_sequence(points)
    moved = ordered.pop(_index_of(ordered, moved_id))
    new_index = max(0, min(new_index, len(ordered)))
    ordered.insert(new_index, moved)
    return _number(ordered)


def insert(
    points: Sequence[Coordinate], point: Coordinate, index: int | None = None
) -> list[Coordinate]:
    """Add ``point`` at ``index`` (append when ``None``) and renumber densely."""
    ordered = sort_by_sequence(points)
    if index is None:
        index = len(ordered)
    ordered.insert(max(0, min(index, len(ordered))), point)
    return _number(ordered)


def remove(points: Sequence[Coordinate], point_id: int) -> list[Coordinate]:
    """Drop one point and close the hole it leaves in the numbering."""
    ordered = sort_by_sequence(points)
    ordered.pop(_index_of(ordered, point_id))
    return _number(ordered)


def changed(before: Sequence[Coordinate], after: Sequence[Coordinate]) -> list[Coordinate]:
    """Points in ``after`` that are new or whose sequence differs from ``before``."""
    previous = {p.id: p.sequence for p in before if p.id is not None}
    return [p for p in after if p.id is None or previous.get(p.id) != p.sequence]


def validate(points: Sequence[Coordinate], finalized: bool = False) -> ValidationResult:
    """Check a path for duplicate sequences, holes in the numbering and length.

    A path with fewer than two points, or with a hole in its numbering, is only
    an error once the segment is finalized; before that both are warnings.
    """
    result = ValidationResult()

    counts = Counter(p.sequence for p in points)
    duplicates = sorted(seq for seq, n in counts.items() if n > 1)
    if duplicates:
        result.issues.append(
            SequenceIssue(
                code=IssueCode.DUPLICATE_SEQUENCE,
                severity=Severity.ERROR,
                message="Duplicate sequence numbers: " + ", ".join(map(str, duplicates)),
                sequences=duplicates,
            )
        )
    else:
        sequences = sorted(counts)
        expected = list(range(1, len(sequences) + 1))
        if sequences != expected:
            missing = sorted(set(range(1, max(sequences, default=0) + 1)) - set(sequences))
            result.issues.append(
                SequenceIssue(
                    code=IssueCode.SEQUENCE_GAP,
                    severity=Severity.ERROR if finalized else Severity.WARNING,
                    message="Sequence numbers are not contiguous",
                    sequences=missing,
                )
            )

    if len(points) < MIN_PATH_POINTS:
        if finalized:
            result.issues.append(
                SequenceIssue(
                    code=IssueCode.EMPTY_PATH,
                    severity=Severity.ERROR,
                    message=f"A segment path requires at least {MIN_PATH_POINTS} coordinates",
                )
            )
        else:
            result.issues.append(
                SequenceIssue(
                    code=IssueCode.INCOMPLETE_PATH,
                    severity=Severity.WARNING,
                    message=f"Path has {len(points)} of at least {MIN_PATH_POINTS} coordinates",
                )
            )

    return result
