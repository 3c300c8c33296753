"""
Tests for the JSON records file repository.
"""
import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from core.exceptions import RecordFileCorruptError, StorageError
from repositories import RecordRepository
from schemas import BMIRecord


def _sample_records():
    return [
        BMIRecord.from_measurements("Alice", 75.5, 1.75),
        BMIRecord.from_measurements("Bob", 50, 1.60),
        BMIRecord.from_measurements("", 98.2, 1.81),
    ]


# =============================================================================
# LOAD
# =============================================================================

def test_load_missing_file_returns_empty(record_repo):
    assert not record_repo.exists()
    assert record_repo.load() == []


def test_init_creates_parent_directory(data_dir):
    nested = os.path.join(data_dir, "nested", "deeper", "users_data.json")
    RecordRepository(data_file=nested)
    assert os.path.isdir(os.path.dirname(nested))


def test_save_then_load(record_repo):
    records = _sample_records()
    record_repo.save(records)
    
    assert record_repo.exists()
    assert record_repo.load() == records


@pytest.mark.parametrize("content", [
    "",
    "not json",
    "{\"name\": \"Alice\"}",
    "[{\"name\": \"Alice\"}]",
    "[{\"name\": \"Alice\", \"weight_kg\": \"heavy\", \"height_m\": 1.7, \"bmi\": 1, \"category\": \"x\"}]",
    "[1, 2, 3]",
    # numbers stored as strings
    "[{\"name\": \"A\", \"weight_kg\": \"75.5\", \"height_m\": \"1.75\", \"bmi\": 24.653061224489797, \"category\": \"Normal Weight\"}]",
    # unknown key
    "[{\"name\": \"A\", \"weight_kg\": 75.5, \"height_m\": 1.75, \"bmi\": 24.653061224489797, \"category\": \"Normal Weight\", \"age\": 40}]",
    # bmi does not match the measurements
    "[{\"name\": \"A\", \"weight_kg\": 75.5, \"height_m\": 1.75, \"bmi\": 1.0, \"category\": \"Underweight\"}]",
    # category does not match the bmi
    "[{\"name\": \"A\", \"weight_kg\": 75.5, \"height_m\": 1.75, \"bmi\": 24.653061224489797, \"category\": \"Obesity\"}]",
    # non-positive measurement
    "[{\"name\": \"A\", \"weight_kg\": 0, \"height_m\": 1.75, \"bmi\": 0, \"category\": \"Underweight\"}]",
    # non-finite bmi
    "[{\"name\": \"A\", \"weight_kg\": 75.5, \"height_m\": 1.75, \"bmi\": Infinity, \"category\": \"Obesity\"}]",
])
def test_load_malformed_file_raises(data_file, content):
    Path(data_file).write_text(content, encoding="utf-8")
    repo = RecordRepository(data_file=data_file)
    
    with pytest.raises(RecordFileCorruptError) as exc_info:
        repo.load()
    
    assert exc_info.value.status_code == 500
    assert data_file in exc_info.value.detail


def test_load_empty_array(data_file):
    Path(data_file).write_text("[]", encoding="utf-8")
    assert RecordRepository(data_file=data_file).load() == []


def test_load_read_error_raises_storage_error(record_repo):
    record_repo.save(_sample_records())
    
    with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
        with pytest.raises(StorageError) as exc_info:
            record_repo.load()
    
    assert not isinstance(exc_info.value, RecordFileCorruptError)
    assert exc_info.value.context["operation"] == "load"


# =============================================================================
# FILE FORMAT
# =============================================================================

def test_file_format_is_indented_array_with_stable_keys(record_repo):
    record_repo.save(_sample_records()[:1])
    
    raw = record_repo.data_file.read_text(encoding="utf-8")
    data = json.loads(raw)
    
    assert isinstance(data, list)
    assert list(data[0].keys()) == ["name", "weight_kg", "height_m", "bmi", "category"]
    assert data[0]["name"] == "Alice"
    assert data[0]["weight_kg"] == 75.5
    assert data[0]["height_m"] == 1.75
    assert data[0]["category"] == "Normal Weight"
    # Multi-line, two-space indent
    assert raw.startswith("[\n  {\n    \"name\": \"Alice\",")


def test_load_accepts_integer_numbers(data_file):
    Path(data_file).write_text(
        json.dumps([{"name": "Int", "weight_kg": 80, "height_m": 2, "bmi": 20, "category": "Normal Weight"}]),
        encoding="utf-8"
    )
    records = RecordRepository(data_file=data_file).load()
    
    assert records[0].weight_kg == 80.0
    assert records[0].bmi == 20.0


def test_non_ascii_names_survive(record_repo):
    record = BMIRecord.from_measurements("Zoë Łukasz 山田", 60, 1.65)
    record_repo.save([record])
    
    assert "Zoë Łukasz 山田" in record_repo.data_file.read_text(encoding="utf-8")
    assert record_repo.load() == [record]


def test_save_load_save_is_byte_identical(record_repo):
    record_repo.save(_sample_records())
    first = record_repo.data_file.read_bytes()
    
    record_repo.save(record_repo.load())
    second = record_repo.data_file.read_bytes()
    
    record_repo.save(record_repo.load())
    third = record_repo.data_file.read_bytes()
    
    assert first == second == third


# =============================================================================
# SAVE
# =============================================================================

def test_save_overwrites_full_set(record_repo):
    records = _sample_records()
    record_repo.save(records)
    record_repo.save(records[:1])
    
    assert record_repo.load() == records[:1]


def test_save_leaves_no_temp_files(record_repo):
    record_repo.save(_sample_records())
    record_repo.save(_sample_records())
    
    assert os.listdir(record_repo.data_file.parent) == [record_repo.data_file.name]


def test_save_failure_keeps_previous_file(record_repo):
    original = _sample_records()[:1]
    record_repo.save(original)
    
    with patch("repositories.record_repository.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(StorageError) as exc_info:
            record_repo.save(_sample_records())
    
    assert exc_info.value.context["operation"] == "save"
    assert record_repo.load() == original
    assert os.listdir(record_repo.data_file.parent) == [record_repo.data_file.name]


def test_save_into_missing_directory_raises_storage_error(data_dir):
    repo = RecordRepository(data_file=os.path.join(data_dir, "gone", "users_data.json"))
    os.rmdir(os.path.join(data_dir, "gone"))
    
    with pytest.raises(StorageError):
        repo.save(_sample_records())


def test_save_refuses_non_finite_numbers(record_repo):
    record_repo.save(_sample_records())
    original = record_repo.data_file.read_bytes()
    bad = BMIRecord.model_construct(
        name="Huge", weight_kg=1e300, height_m=1e-5, bmi=float("inf"), category="Obesity"
    )
    
    with pytest.raises(StorageError) as exc_info:
        record_repo.save([bad])
    
    assert exc_info.value.context["operation"] == "serialize"
    assert record_repo.data_file.read_bytes() == original
    assert b"Infinity" not in original
