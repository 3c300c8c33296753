"""
Repository for the BMI records file.

The whole record set lives in one JSON array on disk. Every save rewrites the
full file, which is fine for personal-scale data and nothing more.

Architecture:
    RecordRepository is the data access layer for BMI records.
    It should be injected via core.dependencies.get_record_repository().

All file I/O is encapsulated here - no file access in service or API layers.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from core.config import DATA_PATH
from core.exceptions import RecordFileCorruptError, StorageError
from schemas import BMIRecord

logger = logging.getLogger(__name__)


class RecordRepository:
    """
    Load/save the full list of BMI records against a single JSON file.
    
    Usage:
        # Via dependency injection (recommended):
        from core.dependencies import get_record_repository
        repo = get_record_repository()
        
        # Direct instantiation (for testing):
        repo = RecordRepository(data_file="/tmp/users_data.json")
    """
    
    def __init__(self, data_file: Optional[str] = None):
        """
        Initialize the repository.
        
        Args:
            data_file: Path to the JSON records file. Defaults to config DATA_PATH.
        """
        self.data_file = Path(data_file or DATA_PATH)
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
    
    def exists(self) -> bool:
        """Return True if the records file is present on disk."""
        return self.data_file.exists()
    
    def load(self) -> List[BMIRecord]:
        """
        Read every record from the file.
        
        Returns:
            List[BMIRecord]: Stored records in file order; empty if the file is absent.
        
        Raises:
            RecordFileCorruptError: If the file is not a JSON array of valid records.
            StorageError: If the file exists but cannot be read.
        """
        if not self.exists():
            logger.info(
                f"{self.data_file} not found, starting with an empty record list",
                extra={"data_file": str(self.data_file)}
            )
            return []
        
        try:
            raw = self.data_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Error reading records file: {e}", exc_info=True)
            raise StorageError(operation="load", data_file=str(self.data_file)) from e
        
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RecordFileCorruptError(
                detail=f"Records file {self.data_file} is not valid JSON: {e}",
                data_file=str(self.data_file)
            ) from e
        
        if not isinstance(data, list):
            raise RecordFileCorruptError(
                detail=f"Records file {self.data_file} must contain a JSON array",
                data_file=str(self.data_file)
            )
        
        try:
            records = [BMIRecord.model_validate(item, strict=True) for item in data]
        except ValidationError as e:
            raise RecordFileCorruptError(
                detail=f"Records file {self.data_file} holds an invalid record: {e}",
                data_file=str(self.data_file)
            ) from e
        
        logger.info(
            f"Loaded {len(records)} records from {self.data_file}",
            extra={"records": len(records)}
        )
        return records
    
    @staticmethod
    def serialize(records: List[BMIRecord]) -> str:
        """Encode records as an indented JSON array with stable key order."""
        return json.dumps(
            [record.model_dump() for record in records],
            indent=2,
            ensure_ascii=False,
            allow_nan=False
        ) + "\n"
    
    def save(self, records: List[BMIRecord]) -> None:
        """
        Overwrite the file with the full record list.
        
        The content goes to a temporary file in the same directory first and is
        then moved over the target, so readers see either the old or the new file.
        
        Raises:
            StorageError: If encoding or writing fails.
        """
        try:
            payload = self.serialize(records)
        except (TypeError, ValueError) as e:
            raise StorageError(operation="serialize") from e
        
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.data_file.parent,
                prefix=f".{self.data_file.name}.",
                suffix=".tmp",
                delete=False
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(payload)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.data_file)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(operation="save", data_file=str(self.data_file)) from e
        
        logger.debug(
            f"Saved {len(records)} records to {self.data_file}",
            extra={"records": len(records)}
        )
