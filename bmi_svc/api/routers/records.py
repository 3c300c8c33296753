"""
Records router - read-only JSON view of the stored BMI records.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from core.dependencies import get_bmi_service
from schemas import BMIRecord
from services import BMIService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/records",
    tags=["BMI Records"],
)


@router.get(
    "",
    response_model=List[BMIRecord],
    summary="List BMI records",
    description="Return every stored record in the order it was added."
)
async def list_records(
    bmi_service: BMIService = Depends(get_bmi_service)
):
    return bmi_service.records
