"""
Pydantic schemas shared by the API, service and repository layers.
"""
from schemas.bmi_record import BMIRecord, PageView

__all__ = [
    "BMIRecord",
    "PageView",
]
