"""Shared fixtures: rosters on disk and ready-made participants."""

from __future__ import annotations

import json

import pytest

from santalink.models import Participant


def make_people(*names: str) -> list[Participant]:
    return [
        Participant(name=n, birthday=f"01-0{i + 1}", anniversary="2020-01-01", token=f"tok-{n.lower()}")
        for i, n in enumerate(names)
    ]


@pytest.fixture
def write_roster(tmp_path):
    """Write a roster document and return its path."""

    def _write(*names: str, filename: str = "seed.json"):
        path = tmp_path / filename
        path.write_text(
            json.dumps(
                [
                    {"name": n, "birthday": f"0{i + 1}-15", "anniversary": "2021-05-01"}
                    for i, n in enumerate(names)
                ]
            ),
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path
