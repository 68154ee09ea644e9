"""Operator confirmation: completeness scoring and terminal prompts."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from barcompass.features.ingestion.schemas import (
    BatchConfirmationRequest,
    BatchDecision,
    BatchSummary,
    ConfirmationRequest,
    ConfirmDecision,
)
from barcompass.features.venues.schemas import VenueCreate

ConfirmCallback = Callable[[ConfirmationRequest], ConfirmDecision]
BatchConfirmCallback = Callable[[BatchConfirmationRequest], BatchDecision]

COMPLETENESS_FIELDS: tuple[str, ...] = (
    "name",
    "formatted_address",
    "phone_number",
    "international_phone_number",
    "website",
    "rating",
    "rating_count",
    "price_level",
    "categories",
    "business_status",
    "opening_hours",
)

VENUE_ANSWERS: dict[str, ConfirmDecision] = {
    "y": ConfirmDecision.PROCEED,
    "yes": ConfirmDecision.PROCEED,
    "": ConfirmDecision.SKIP,
    "n": ConfirmDecision.SKIP,
    "no": ConfirmDecision.SKIP,
    "s": ConfirmDecision.SHOW_MORE,
    "q": ConfirmDecision.QUIT,
}

BATCH_ANSWERS: dict[str, BatchDecision] = {
    "y": BatchDecision.PROCEED,
    "yes": BatchDecision.PROCEED,
    "": BatchDecision.ABORT,
    "n": BatchDecision.ABORT,
    "no": BatchDecision.ABORT,
}


def _populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str | list | dict):
        return len(value) > 0
    return True


def calculate_completeness(record: VenueCreate) -> int:
    """Percentage (0-100) of the checklist fields that are populated."""
    filled = sum(1 for field in COMPLETENESS_FIELDS if _populated(getattr(record, field)))
    return round(filled / len(COMPLETENESS_FIELDS) * 100)


def format_venue(request: ConfirmationRequest) -> list[str]:
    """Lines describing a record awaiting confirmation."""
    record = request.record
    lines = [
        f"{record.name} ({record.external_id})",
        f"  action: {request.proposed_action.value}  completeness: {request.completeness}%",
        f"  address: {record.formatted_address or '-'}",
    ]
    if request.show_details:
        lines.extend(
            [
                f"  phone: {record.phone_number or '-'}",
                f"  website: {record.website or '-'}",
                f"  rating: {record.rating if record.rating is not None else '-'}"
                f" ({record.rating_count or 0} ratings)",
                f"  price level: {record.price_level if record.price_level is not None else '-'}",
                f"  status: {record.business_status.value if record.business_status else '-'}",
                f"  categories: {', '.join(record.categories or []) or '-'}",
                f"  timezone: {record.timezone or '-'}",
                f"  tags: {', '.join(record.tags or []) or '-'}",
            ]
        )
        missing = [f for f in COMPLETENESS_FIELDS if not _populated(getattr(record, f))]
        if missing:
            lines.append(f"  missing: {', '.join(missing)}")
    return lines


def format_summary(summary: BatchSummary) -> list[str]:
    """Lines describing a completed batch."""
    return [
        f"total: {summary.total}",
        f"inserted: {summary.inserted}",
        f"updated: {summary.updated}",
        f"skipped: {summary.skipped}",
        f"errors: {summary.errors}",
        f"success rate: {summary.success_rate:.2f}%",
    ]


class CliConfirmation:
    """Terminal prompts for per-record and per-batch confirmation.

    Args:
        input_func: Reads one answer; ``input`` by default.
        output: Writes one line; ``print`` by default.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> None:
        self._input = input_func
        self._output = output

    def confirm_venue(self, request: ConfirmationRequest) -> ConfirmDecision:
        """Ask about one record until a recognised answer is given."""
        for line in format_venue(request):
            self._output(line)
        while True:
            answer = self._input("Proceed? [y]es / [N]o / [s]how more / [q]uit: ").strip().lower()
            if answer in VENUE_ANSWERS:
                return VENUE_ANSWERS[answer]
            self._output(f"Unrecognised answer: {answer!r}")

    def confirm_batch(self, request: BatchConfirmationRequest) -> BatchDecision:
        """Show the planned actions and ask once for the whole batch."""
        for item in request.planned:
            self._output(
                f"{item.proposed_action.value:>6}  {item.name} ({item.external_id})"
                f"  {item.completeness}%"
            )
        totals = ", ".join(f"{action}: {count}" for action, count in request.totals.items())
        self._output(f"Planned: {totals}")
        while True:
            answer = self._input("Process this batch? [y/N]: ").strip().lower()
            if answer in BATCH_ANSWERS:
                return BATCH_ANSWERS[answer]
            self._output(f"Unrecognised answer: {answer!r}")
