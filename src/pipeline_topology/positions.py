"""Field and position rules for a pipeline segment.

Every rule runs; nothing short-circuits, so the caller gets the full list of
problems in one pass.
"""

from .issues import FieldError, IssueCode
from .models import Segment

CODE_LENGTH = (2, 20)
NAME_LENGTH = (3, 100)

PHYSICAL_FIELDS = [
    ("diameter", "Diameter"),
    ("thickness", "Thickness"),
    ("roughness", "Roughness"),
]

REQUIRED_RELATIONSHIPS = [
    ("operational_status_id", "Operational status"),
    ("construction_material_id", "Construction material"),
    ("departure_facility_id", "Departure facility"),
    ("arrival_facility_id", "Arrival facility"),
    ("pipeline_id", "Pipeline"),
]

DATE_ORDER = [
    ("installation_date", "Installation date"),
    ("commissioning_date", "Commissioning date"),
    ("decommissioning_date", "Decommissioning date"),
]


def segment_length(segment: Segment) -> float | None:
    """Derived length in km, or ``None`` while an offset is missing."""
    return segment.length


def validate_segment(segment: Segment) -> list[FieldError]:
    """Return every field error on ``segment`` (empty when it is valid)."""
    errors: list[FieldError] = []
    errors += _check_text(segment.code, "code", "Code", CODE_LENGTH)
    errors += _check_text(segment.name, "name", "Name", NAME_LENGTH)

    for field, label in PHYSICAL_FIELDS:
        errors += _check_non_negative(getattr(segment, field), field, label)

    errors += _check_non_negative(segment.start_point, "start_point", "Start point")
    errors += _check_non_negative(segment.end_point, "end_point", "End point")
    if (
        segment.start_point is not None
        and segment.end_point is not None
        and segment.end_point <= segment.start_point
    ):
        errors.append(
            FieldError(
                field="end_point",
                code=IssueCode.INVALID_RANGE,
                message="End point must be greater than start point",
            )
        )

    # 0 and missing are both normalised to None on the model
    for field, label in REQUIRED_RELATIONSHIPS:
        if getattr(segment, field) is None:
            errors.append(
                FieldError(field=field, code=IssueCode.REQUIRED, message=f"{label} is required")
            )

    errors += _check_date_order(segment)
    return errors


def _check_text(value: str, field: str, label: str, bounds: tuple[int, int]) -> list[FieldError]:
    low, high = bounds
    value = (value or "").strip()
    if not value:
        return [FieldError(field=field, code=IssueCode.REQUIRED, message=f"{label} is required")]
    if not low <= len(value) <= high:
        return [
            FieldError(
                field=field,
                code=IssueCode.INVALID_LENGTH,
                message=f"{label} must be between {low} and {high} characters",
            )
        ]
    return []


def _check_non_negative(value: float | None, field: str, label: str) -> list[FieldError]:
    if value is None:
        return [FieldError(field=field, code=IssueCode.REQUIRED, message=f"{label} is required")]
    if value < 0:
        return [
            FieldError(
                field=field,
                code=IssueCode.NEGATIVE,
                message=f"{label} must be zero or positive",
            )
        ]
    return []


def _check_date_order(segment: Segment) -> list[FieldError]:
    errors = []
    dated = [(f, label, getattr(segment, f)) for f, label in DATE_ORDER]
    dated = [d for d in dated if d[2] is not None]
    for (_, earlier_label, earlier), (field, label, later) in zip(dated, dated[1:]):
        if later < earlier:
            errors.append(
                FieldError(
                    field=field,
                    code=IssueCode.INVALID_DATE_ORDER,
                    message=f"{label} cannot be before {earlier_label.lower()}",
                )
            )
    return errors
