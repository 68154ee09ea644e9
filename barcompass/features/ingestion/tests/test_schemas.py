"""Tests for ingestion schemas."""

import pytest
from pydantic import ValidationError

from barcompass.features.ingestion.schemas import (
    BatchSummary,
    IngestVenuesRequest,
    VenueInput,
)
from barcompass.features.venues.schemas import ConflictResolution, OutcomeKind


class TestVenueInput:
    def test_alias_and_field_name_accepted(self):
        assert VenueInput.model_validate({"name": "A", "searchQuery": "q1"}).search_query == "q1"
        assert VenueInput(name="A", search_query="q2").search_query == "q2"

    def test_default_query(self):
        assert VenueInput(name="Bar X").query == "Bar X cocktail bar"

    def test_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            VenueInput(name="")


class TestBatchSummary:
    def test_counts_and_finalize(self):
        summary = BatchSummary(total=4)
        for kind in (OutcomeKind.INSERTED, OutcomeKind.UPDATED, OutcomeKind.SKIPPED, OutcomeKind.ERROR):
            summary.count(kind)

        summary.finalize()

        assert (summary.inserted, summary.updated, summary.skipped, summary.errors) == (1, 1, 1, 1)
        assert summary.success_rate == 75.0
        assert summary.has_errors is True

    def test_empty_batch_success_rate(self):
        summary = BatchSummary()
        summary.finalize()

        assert summary.success_rate == 0.0
        assert summary.has_errors is False


class TestIngestVenuesRequest:
    def test_default_resolution_is_merge(self):
        request = IngestVenuesRequest(records=[{"external_id": "A", "name": "Bar X"}])

        assert request.resolution == ConflictResolution.MERGE

    def test_requires_records(self):
        with pytest.raises(ValidationError):
            IngestVenuesRequest(records=[])

    def test_rejects_unknown_resolution(self):
        with pytest.raises(ValidationError):
            IngestVenuesRequest(records=[{"external_id": "A", "name": "X"}], resolution="overwrite")
