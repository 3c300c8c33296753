"""
Pages router - the HTML form, the record table and the form handler.

Architecture:
    HTTP Request → Router (this file) → BMIService → RecordRepository → JSON file

Flow for a submission:
    1. POST /calculate with form fields name, weight, height
    2. BMIService validates, computes, appends and persists
    3. 303 redirect to /?status=success
    4. GET / renders the table with a confirmation for the latest record

Errors:
    - Non-numeric, non-finite or non-positive weight/height: 400 (InvalidMeasurementError)
    - Wrong method on /calculate: 405 (router method matching)
    - Template failure: 500 (PresentationError)
    All of them are turned into plain-text responses by setup_exception_handlers().
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from jinja2 import TemplateError

from core.dependencies import PAGE_TEMPLATE, get_bmi_service, get_templates
from core.exceptions import PresentationError
from services import BMIService
from services.bmi_service import STATUS_SUCCESS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])


@router.get(
    "/",
    response_class=HTMLResponse,
    summary="Render the BMI page",
    description="Show the input form and every stored record. "
                "With status=success, also show a confirmation for the latest record."
)
async def index(
    request: Request,
    status: Optional[str] = Query(None, description="'success' after a submission", examples=["success"]),
    bmi_service: BMIService = Depends(get_bmi_service),
    templates: Jinja2Templates = Depends(get_templates)
):
    page = bmi_service.build_page(status)
    
    try:
        return templates.TemplateResponse(
            request,
            PAGE_TEMPLATE,
            {"records": page.records, "message": page.message}
        )
    except TemplateError as e:
        raise PresentationError(detail=f"Error rendering template: {e}") from e


@router.post(
    "/calculate",
    status_code=303,
    response_class=RedirectResponse,
    summary="Calculate and store a BMI record",
    description="Accepts a form-encoded body with name, weight (kg) and height (m). "
                "Redirects back to the page on success."
)
async def calculate(
    name: str = Form("", description="Person's name", examples=["Alice"]),
    weight: str = Form("", description="Weight in kilograms", examples=["75.5"]),
    height: str = Form("", description="Height in meters", examples=["1.75"]),
    bmi_service: BMIService = Depends(get_bmi_service)
):
    """
    Compute BMI for the submitted measurements and append the record.
    
    A failure to write the records file is logged by the service and does not
    change the response.
    """
    bmi_service.add_record(name=name, weight=weight, height=height)
    return RedirectResponse(url=f"/?status={STATUS_SUCCESS}", status_code=303)
