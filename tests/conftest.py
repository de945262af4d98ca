from __future__ import annotations

import json

import pytest

from choco.records import RecordStore, prepare_context

SAMPLE = [
    {
        "age": 19,
        "gender": "Female",
        "region": "North",
        "brand_preference": "Cadbury Dairy Milk",
        "purchase_frequency": "Weekly",
        "average_spend_inr": 100,
        "purchase_channel": "Online",
        "occasion": "Snack",
        "mood": "Happy",
        "satisfaction_score": 4.5,
    },
    {
        "age": 25,
        "gender": "Male",
        "region": "North",
        "brand_preference": "Amul Dark",
        "purchase_frequency": "Monthly",
        "average_spend_inr": 300,
        "purchase_channel": "Supermarket",
        "occasion": "Gift",
        "mood": "Stressed",
        "satisfaction_score": 4.0,
    },
    {
        "age": 34,
        "gender": "Female",
        "region": "South",
        "brand_preference": "Cadbury Dairy Milk",
        "purchase_frequency": "Weekly",
        "average_spend_inr": 200,
        "purchase_channel": "Online",
        "occasion": "Snack",
        "mood": "Happy",
        "satisfaction_score": 3.5,
    },
    {
        "age": 47,
        "gender": "Male",
        "region": "East",
        "brand_preference": "Ferrero Rocher",
        "purchase_frequency": "Occasionally",
        "average_spend_inr": 500,
        "purchase_channel": "Online",
        "occasion": "Festival",
        "mood": "Happy",
        "satisfaction_score": 4.9,
    },
    {
        "age": 63,
        "gender": "Female",
        "region": "South",
        "brand_preference": "Hershey's",
        "purchase_frequency": "Monthly",
        "average_spend_inr": 150,
        "purchase_channel": "Local Store",
        "occasion": "Gift",
        "mood": "Relaxed",
        "satisfaction_score": 3.0,
    },
]


@pytest.fixture
def sample_records():
    return [dict(r) for r in SAMPLE]


@pytest.fixture
def store(sample_records):
    return RecordStore(loader=lambda: sample_records)


@pytest.fixture
def empty_store():
    return RecordStore(loader=lambda: [])


@pytest.fixture
def json_path(tmp_path, sample_records):
    path = tmp_path / "chocolate-data.json"
    path.write_text(json.dumps(sample_records), encoding="utf-8")
    return path


@pytest.fixture
def make_ctx(store):
    def _make(raw=None, source=None):
        return prepare_context(raw or {}, source or store)

    return _make
