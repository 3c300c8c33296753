"""
Service layer for BMI records.

BMIService is the single owner of the in-memory record set. It is built once
at startup (see core.dependencies.get_bmi_service) and shared by every request.

Architecture:
    API Layer (routers) → BMIService → RecordRepository → JSON file

Concurrency:
    A threading.Lock guards the record list. Appending a record and writing the
    full list to disk happen inside one critical section, so concurrent
    submissions are serialized and the file always matches some prefix of the
    in-memory list.
"""
import logging
import math
import threading
from typing import List, Optional, Tuple

from core.bmi_engine import compute_bmi
from core.exceptions import InvalidMeasurementError, StorageError
from core.middleware import MetricsCollector, get_metrics_collector
from repositories import RecordRepository
from schemas import BMIRecord, PageView

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"


class BMIService:
    """
    Owns the record set: validation, BMI computation, append and persistence.
    """
    
    def __init__(
        self,
        record_repository: RecordRepository,
        metrics: Optional[MetricsCollector] = None
    ):
        """
        Initialize the service and load existing records.
        
        Args:
            record_repository: Repository for the records file.
            metrics: Collector for persistence outcomes. Defaults to the global one.
        
        Raises:
            RecordFileCorruptError: If the records file is malformed.
            StorageError: If the records file cannot be read.
        """
        self._repo = record_repository
        self._metrics = metrics or get_metrics_collector()
        self._lock = threading.Lock()
        self._records: List[BMIRecord] = self._repo.load()
    
    @property
    def records(self) -> List[BMIRecord]:
        """Snapshot of all records in insertion order."""
        with self._lock:
            return list(self._records)
    
    @staticmethod
    def parse_measurements(weight: Optional[str], height: Optional[str]) -> Tuple[float, float]:
        """
        Parse weight and height form values.
        
        Returns:
            (weight_kg, height_m) as floats.
        
        Raises:
            InvalidMeasurementError: If either value is not a finite number above zero.
        """
        try:
            weight_kg = float(weight)
            height_m = float(height)
        except (TypeError, ValueError) as e:
            raise InvalidMeasurementError(weight=weight, height=height) from e
        
        if not (math.isfinite(weight_kg) and math.isfinite(height_m)):
            raise InvalidMeasurementError(weight=weight, height=height)
        if weight_kg <= 0 or height_m <= 0:
            raise InvalidMeasurementError(weight=weight, height=height)
        
        return weight_kg, height_m
    
    def add_record(self, name: str, weight: Optional[str], height: Optional[str]) -> BMIRecord:
        """
        Validate a submission, compute its BMI, append it and persist all records.
        
        A failed write is logged and counted but not raised: the record stays
        in memory and the caller sees success.
        
        Args:
            name: Free-text label.
            weight: Weight in kilograms, as submitted.
            height: Height in meters, as submitted.
        
        Returns:
            BMIRecord: The appended record.
        
        Raises:
            InvalidMeasurementError: If weight or height is invalid, or their BMI is not
                a finite number. Nothing is appended.
        """
        weight_kg, height_m = self.parse_measurements(weight, height)
        # Huge weight over a tiny height overflows to inf
        if not math.isfinite(compute_bmi(weight_kg, height_m)):
            raise InvalidMeasurementError(weight=weight, height=height)
        record = BMIRecord.from_measurements(name or "", weight_kg, height_m)
        
        with self._lock:
            self._records.append(record)
            total = len(self._records)
            try:
                self._repo.save(self._records)
            except StorageError as e:
                self._metrics.record_persist_result(success=False)
                logger.error(
                    f"Failed to save records: {e.detail}",
                    exc_info=True,
                    extra={"records": total, "context": e.context}
                )
            else:
                self._metrics.record_persist_result(success=True)
        
        logger.info(
            "BMI record added",
            extra={
                "bmi": round(record.bmi, 2),
                "category": record.category,
                "records": total,
            }
        )
        return record
    
    @staticmethod
    def success_message(record: BMIRecord) -> str:
        """Confirmation text shown after a record is added."""
        return f"Success! {record.name}'s BMI ({record.bmi:.2f}) calculated and saved."
    
    def build_page(self, status: Optional[str] = None) -> PageView:
        """
        Build the view model for the main page.
        
        The success message refers to the latest record and is only shown when
        status is "success" and at least one record exists.
        """
        records = self.records
        message = None
        if status == STATUS_SUCCESS and records:
            message = self.success_message(records[-1])
        return PageView(records=records, message=message)
