"""
FastAPI dependency injection configuration for the BMI Service.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    BMIService (process-wide owner of the record set)
         ↓ Injected
    RecordRepository (JSON file access)

BMIService and the template environment are created once and reused for the
life of the process; main.py builds both during startup so that a malformed
records file or a missing template stops the service before it serves anything.

Usage in Routers:
    from core.dependencies import get_bmi_service

    @router.post("/calculate")
    async def calculate(bmi_service: BMIService = Depends(get_bmi_service)):
        ...

Testing:
    app.dependency_overrides[get_bmi_service] = lambda: test_service
"""
import logging
from typing import Optional

from fastapi.templating import Jinja2Templates
from jinja2 import TemplateNotFound

from core.config import settings
from core.exceptions import TemplateMissingError

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = "layout.html"


# =============================================================================
# REPOSITORY DEPENDENCY
# =============================================================================

def get_record_repository() -> "RecordRepository":
    """
    Get a RecordRepository bound to the configured records file.
    
    Returns:
        RecordRepository: Repository for the JSON records file.
    """
    from repositories import RecordRepository
    
    return RecordRepository(data_file=settings.data_path)


# =============================================================================
# SERVICE DEPENDENCY
# =============================================================================

_bmi_service_instance: Optional["BMIService"] = None


def get_bmi_service() -> "BMIService":
    """
    Get the BMIService instance, creating it on first use.
    
    Creating the service loads the records file.
    
    Raises:
        RecordFileCorruptError: If the records file is malformed.
    """
    global _bmi_service_instance
    
    if _bmi_service_instance is None:
        from services import BMIService
        
        logger.info(f"Loading BMI records: {settings.data_path}")
        _bmi_service_instance = BMIService(record_repository=get_record_repository())
    
    return _bmi_service_instance


def reset_bmi_service() -> None:
    """Drop the cached BMIService (for testing only)."""
    global _bmi_service_instance
    _bmi_service_instance = None


# =============================================================================
# PRESENTATION DEPENDENCY
# =============================================================================

_templates_instance: Optional[Jinja2Templates] = None


def load_templates(directory: str) -> Jinja2Templates:
    """
    Create the template environment and check the page template is loadable.
    
    Raises:
        TemplateMissingError: If the page template cannot be found.
    """
    templates = Jinja2Templates(directory=directory)
    try:
        templates.get_template(PAGE_TEMPLATE)
    except TemplateNotFound as e:
        raise TemplateMissingError(
            detail=f"Template {PAGE_TEMPLATE} not found in {directory}",
            template_dir=directory
        ) from e
    return templates


def get_templates() -> Jinja2Templates:
    """Get the shared template environment, creating it on first use."""
    global _templates_instance
    
    if _templates_instance is None:
        _templates_instance = load_templates(settings.bmi_svc_template_dir)
    
    return _templates_instance


def reset_templates() -> None:
    """Drop the cached template environment (for testing only)."""
    global _templates_instance
    _templates_instance = None


# =============================================================================
# DEPENDENCY OVERRIDE HELPERS (FOR TESTING)
# =============================================================================

class DependencyOverrides:
    """
    Context manager for temporarily overriding dependencies in tests.
    
    Usage:
        with DependencyOverrides(app) as overrides:
            overrides.set(get_bmi_service, lambda: fake_service)
    """
    
    def __init__(self, app):
        self.app = app
        self._original_overrides = {}
    
    def __enter__(self):
        self._original_overrides = self.app.dependency_overrides.copy()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.app.dependency_overrides = self._original_overrides
    
    def set(self, dependency, override):
        """Set a dependency override."""
        self.app.dependency_overrides[dependency] = override
    
    def clear(self):
        """Clear all overrides."""
        self.app.dependency_overrides = self._original_overrides.copy()
