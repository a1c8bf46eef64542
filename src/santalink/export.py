"""CSV exports for the organizer."""

from __future__ import annotations

import csv
import io
from collections.abc import Callable, Iterable

from santalink.models import Assignment, Participant

ASSIGNMENTS_HEADER = [
    "giver",
    "giver-birthday",
    "giver-anniversary",
    "receiver",
    "receiver-birthday",
    "receiver-anniversary",
    "claim-link",
]
LINKS_HEADER = ["name", "claim-link"]


def links_csv(people: Iterable[Participant], claim_link: Callable[[str], str]) -> str:
    """name, claim-link for every participant, in roster order."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(LINKS_HEADER)
    for person in people:
        writer.writerow([person.name, claim_link(person.token)])
    return buf.getvalue()


def assignments_csv(
    people: Iterable[Participant],
    rows: Iterable[Assignment],
    claim_link: Callable[[str], str],
) -> str:
    """One line per stored assignment.

    Rows whose giver or receiver is no longer on the roster are skipped.
    """
    by_token = {p.token: p for p in people}
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(ASSIGNMENTS_HEADER)
    for row in rows:
        giver = by_token.get(row.giver_token)
        receiver = by_token.get(row.receiver_token)
        if giver is None or receiver is None:
            continue
        writer.writerow(
            [
                giver.name,
                giver.birthday,
                giver.anniversary,
                receiver.name,
                receiver.birthday,
                receiver.anniversary,
                claim_link(giver.token),
            ]
        )
    return buf.getvalue()
