"""
Pydantic schemas for BMI records and the page view model.
"""
import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.bmi_engine import classify, compute_bmi


class BMIRecord(BaseModel):
    """One stored BMI computation.
    
    Field order here is the key order of the persisted JSON objects.
    Instances are frozen, and bmi/category must match what the engine derives
    from weight_kg/height_m, so a record read from disk cannot carry a
    mismatched triple.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        allow_inf_nan=False,
        json_schema_extra={
            "example": {
                "name": "Alice",
                "weight_kg": 75.5,
                "height_m": 1.75,
                "bmi": 24.653061224489797,
                "category": "Normal Weight"
            }
        }
    )
    
    name: str = Field(..., description="Free-text label for the person", examples=["Alice"])
    weight_kg: float = Field(..., gt=0, description="Weight in kilograms", examples=[75.5])
    height_m: float = Field(..., gt=0, description="Height in meters", examples=[1.75])
    bmi: float = Field(..., description="weight_kg / height_m²", examples=[24.65])
    category: str = Field(..., description="BMI category label", examples=["Normal Weight"])
    
    @model_validator(mode="after")
    def check_derived_fields(self) -> "BMIRecord":
        expected_bmi = compute_bmi(self.weight_kg, self.height_m)
        if not math.isclose(self.bmi, expected_bmi, rel_tol=1e-9, abs_tol=1e-12):
            raise ValueError(
                f"bmi {self.bmi} does not match weight_kg/height_m² ({expected_bmi})"
            )
        expected_category = classify(expected_bmi)
        if self.category != expected_category:
            raise ValueError(
                f"category {self.category!r} does not match bmi (expected {expected_category!r})"
            )
        return self
    
    @classmethod
    def from_measurements(cls, name: str, weight_kg: float, height_m: float) -> "BMIRecord":
        """Build a record, deriving bmi and category from the measurements."""
        bmi = compute_bmi(weight_kg, height_m)
        return cls(
            name=name,
            weight_kg=weight_kg,
            height_m=height_m,
            bmi=bmi,
            category=classify(bmi)
        )


class PageView(BaseModel):
    """Data handed to the page template."""
    records: List[BMIRecord] = Field(default_factory=list)
    message: Optional[str] = None
