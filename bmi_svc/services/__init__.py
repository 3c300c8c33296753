"""
Service layer for business logic.
"""
from services.bmi_service import BMIService

__all__ = [
    "BMIService",
]
