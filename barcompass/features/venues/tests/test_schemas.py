"""Tests for venue schemas."""

import pytest
from pydantic import ValidationError

from barcompass.core.exceptions import DatabaseError
from barcompass.features.venues.schemas import (
    Changeset,
    OutcomeKind,
    UpsertOutcome,
    VenueCreate,
    VenueResponse,
)


class TestVenueCreate:
    def test_minimal_record(self):
        record = VenueCreate(external_id="A", name="Bar X")

        assert record.data_source == "google_places"
        assert record.categories is None
        assert record.model_fields_set == {"external_id", "name"}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"external_id": ""},
            {"rating": 5.1},
            {"price_level": 5},
            {"lat": 91},
            {"lng": -181},
            {"rating_count": -1},
            {"business_status": "OPEN"},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            VenueCreate(**{"external_id": "A", "name": "Bar X", **overrides})


class TestUpsertOutcome:
    def _record(self) -> VenueResponse:
        return VenueResponse(id=1, external_id="A", name="Bar X", data_source="google_places")

    def test_inserted(self):
        outcome = UpsertOutcome.inserted(self._record())

        assert outcome.kind == OutcomeKind.INSERTED
        assert outcome.changes == Changeset(added=["A"])

    def test_updated(self):
        outcome = UpsertOutcome.updated(self._record())

        assert outcome.changes == Changeset(updated=["A"])

    def test_skipped_without_record(self):
        outcome = UpsertOutcome.skipped("A")

        assert outcome.record is None
        assert outcome.changes == Changeset(unchanged=["A"])

    def test_failed_uses_error_message(self):
        outcome = UpsertOutcome.failed("A", DatabaseError("Failed to insert venue A"))

        assert outcome.kind == OutcomeKind.ERROR
        assert outcome.error.message == "Failed to insert venue A"
        assert outcome.error.error_type == "DatabaseError"
        assert outcome.changes == Changeset(errors=["A"])

    def test_failed_with_empty_message_uses_type_name(self):
        outcome = UpsertOutcome.failed("A", RuntimeError())

        assert outcome.error.message == "RuntimeError"


def test_changeset_absorb():
    total = Changeset(added=["A"])

    total.absorb(Changeset(updated=["B"], errors=["C"]))
    total.absorb(Changeset(added=["D"], unchanged=["E"]))

    assert total == Changeset(added=["A", "D"], updated=["B"], unchanged=["E"], errors=["C"])
