"""Tests for segment field and position rules."""

from datetime import date

from factories import make_segment
from pipeline_topology.issues import IssueCode
from pipeline_topology.models import Segment
from pipeline_topology.positions import segment_length, validate_segment

GEOMETRY_FIELDS = {"start_point", "end_point"}


def _codes(errors):
    return {(e.field, e.code) for e in errors}


class TestValidSegment:
    def test_complete_segment_has_no_errors(self):
        assert validate_segment(make_segment(1, 0, 10)) == []

    def test_length_is_derived(self):
        seg = make_segment(1, 2.5, 10)
        assert segment_length(seg) == 7.5
        assert seg.to_wire()["length"] == 7.5

    def test_incoming_length_is_ignored(self):
        seg = Segment.model_validate({"startPoint": 0, "endPoint": 4, "length": 99})
        assert seg.length == 4

    def test_zero_start_is_allowed(self):
        errors = validate_segment(make_segment(1, 0, 0.1))
        assert not any(e.field in GEOMETRY_FIELDS for e in errors)


class TestPositionRules:
    def test_inverted_range_is_only_invalid_range(self):
        errors = validate_segment(make_segment(1, 10, 5))
        geometry = [e for e in errors if e.field in GEOMETRY_FIELDS]
        assert [(e.field, e.code) for e in geometry] == [("end_point", IssueCode.INVALID_RANGE)]
        assert errors == geometry

    def test_equal_offsets_are_invalid_range(self):
        errors = validate_segment(make_segment(1, 5, 5))
        assert _codes(errors) == {("end_point", IssueCode.INVALID_RANGE)}

    def test_negative_offsets(self):
        errors = validate_segment(make_segment(1, -1, -0.5))
        assert ("start_point", IssueCode.NEGATIVE) in _codes(errors)
        assert ("end_point", IssueCode.NEGATIVE) in _codes(errors)

    def test_missing_offsets_are_required(self):
        errors = validate_segment(make_segment(1, None, None))
        assert ("start_point", IssueCode.REQUIRED) in _codes(errors)
        assert ("end_point", IssueCode.REQUIRED) in _codes(errors)
        assert not any(e.code is IssueCode.INVALID_RANGE for e in errors)


class TestFieldRules:
    def test_all_rules_are_checked_together(self):
        seg = make_segment(
            1, 10, 5, code="X", name="ab", diameter=-1, thickness=None,
            operational_status_id=None, pipeline_id=None,
        )
        assert _codes(validate_segment(seg)) == {
            ("code", IssueCode.INVALID_LENGTH),
            ("name", IssueCode.INVALID_LENGTH),
            ("diameter", IssueCode.NEGATIVE),
            ("thickness", IssueCode.REQUIRED),
            ("end_point", IssueCode.INVALID_RANGE),
            ("operational_status_id", IssueCode.REQUIRED),
            ("pipeline_id", IssueCode.REQUIRED),
        }

    def test_blank_code_and_name_are_required(self):
        errors = validate_segment(make_segment(1, code="  ", name=""))
        assert ("code", IssueCode.REQUIRED) in _codes(errors)
        assert ("name", IssueCode.REQUIRED) in _codes(errors)

    def test_zero_identifier_counts_as_missing(self):
        seg = Segment.model_validate(
            {**make_segment(1).to_wire(), "departureFacilityId": 0, "arrivalFacilityId": None}
        )
        assert seg.departure_facility_id is None
        codes = _codes(validate_segment(seg))
        assert ("departure_facility_id", IssueCode.REQUIRED) in codes
        assert ("arrival_facility_id", IssueCode.REQUIRED) in codes

    def test_messages_are_human_readable(self):
        errors = validate_segment(make_segment(1, code="X"))
        assert [str(e) for e in errors] == ["Code must be between 2 and 20 characters"]

    def test_dates_out_of_order(self):
        seg = make_segment(
            1,
            installation_date=date(2020, 5, 1),
            commissioning_date=date(2019, 1, 1),
        )
        assert _codes(validate_segment(seg)) == {("commissioning_date", IssueCode.INVALID_DATE_ORDER)}

    def test_dates_parse_from_wire_format(self):
        seg = Segment.model_validate({**make_segment(1).to_wire(), "installationDate": "2021-03-04"})
        assert seg.installation_date == date(2021, 3, 4)
        assert seg.to_wire()["installationDate"] == "2021-03-04"
