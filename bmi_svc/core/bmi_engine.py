"""
BMI formula and category classification.

Pure functions with no side effects. Category bands are half-open so that
every finite non-negative BMI falls into exactly one of them:

    [0, 18.5)      Underweight
    [18.5, 25.0)   Normal Weight
    [25.0, 30.0)   Overweight
    [30.0, inf]    Obesity

NaN and negative values cannot be interpreted.
"""
import math

UNDERWEIGHT = "Underweight"
NORMAL_WEIGHT = "Normal Weight"
OVERWEIGHT = "Overweight"
OBESITY = "Obesity"
CANNOT_INTERPRET = "Cannot interpret"

NORMAL_LOWER = 18.5
OVERWEIGHT_LOWER = 25.0
OBESITY_LOWER = 30.0


def compute_bmi(weight_kg: float, height_m: float) -> float:
    """
    Compute Body Mass Index as weight / height².
    
    Returns 0.0 when height is zero or negative, or so small that its
    square underflows to zero, instead of dividing by it.
    """
    denominator = height_m * height_m
    if height_m <= 0 or denominator <= 0:
        return 0.0
    return weight_kg / denominator


def classify(bmi: float) -> str:
    """Return the category label for a BMI value."""
    if math.isnan(bmi) or bmi < 0:
        return CANNOT_INTERPRET
    if bmi < NORMAL_LOWER:
        return UNDERWEIGHT
    if bmi < OVERWEIGHT_LOWER:
        return NORMAL_WEIGHT
    if bmi < OBESITY_LOWER:
        return OVERWEIGHT
    return OBESITY
