"""Tests for identifier normalisation and the camelCase wire format."""

import pytest
from pydantic import ValidationError

from factories import make_point, make_segment
from pipeline_topology.models import Coordinate, Pipeline, Segment


class TestIdentifiers:
    @pytest.mark.parametrize("raw", [0, None, ""])
    def test_zero_null_and_blank_mean_absent(self, raw):
        seg = Segment.model_validate({"id": raw, "pipelineId": raw, "departureFacilityId": raw})
        assert seg.id is None
        assert seg.pipeline_id is None
        assert seg.departure_facility_id is None

    def test_missing_key_means_absent(self):
        assert Pipeline.model_validate({"code": "GR1", "name": "Main line"}).id is None

    def test_keyword_construction(self):
        point = Coordinate(id=None, sequence=1, latitude=0, longitude=0, owner_id=0)
        assert point.id is None
        assert point.owner_id is None

    def test_negative_identifier_is_rejected(self):
        with pytest.raises(ValidationError):
            Segment(id=-3)

    def test_positive_identifier_is_kept(self):
        assert Segment.model_validate({"arrivalFacilityId": 7}).arrival_facility_id == 7


class TestWireFormat:
    def test_new_records_survive_a_round_trip(self):
        point = make_point(None, 1, owner_id=None)
        wire = point.to_wire()
        assert wire["id"] is None
        assert wire["infrastructureId"] is None
        assert Coordinate.model_validate(wire) == point

    def test_segment_round_trip(self):
        seg = make_segment(None, 0, 10, coordinateIds=[1, 2])
        wire = seg.to_wire()
        assert wire["startPoint"] == 0
        assert wire["coordinateIds"] == [1, 2]
        assert Segment.model_validate(wire) == seg
