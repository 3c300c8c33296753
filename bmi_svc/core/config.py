"""
Configuration module for the BMI Service.
Uses Pydantic BaseSettings so values can come from the environment or a .env file.
"""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Page templates ship inside the api package
DEFAULT_TEMPLATE_DIR = str(Path(__file__).resolve().parent.parent / "api" / "templates")


class Settings(BaseSettings):
    """
    Application settings with validation.
    Every field has a default, so the service starts with no environment at all.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    # Record storage
    bmi_svc_data_dir: str = Field(default="data", description="Directory holding the records file")
    bmi_svc_data_file: str = Field(default="users_data.json", description="Records filename")
    
    # Presentation
    bmi_svc_template_dir: str = Field(default=DEFAULT_TEMPLATE_DIR, description="Jinja2 template directory")
    
    # API Configuration
    bmi_svc_host: str = Field(default="0.0.0.0", description="API host")
    bmi_svc_port: int = Field(default=8080, description="API port")
    bmi_svc_reload: bool = Field(default=False, description="Enable hot reload")
    
    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="json", description="'json' or 'text'")
    
    @property
    def data_path(self) -> str:
        """Get the full records file path."""
        return str(Path(self.bmi_svc_data_dir) / self.bmi_svc_data_file)


settings = Settings()

DATA_PATH = settings.data_path
TEMPLATE_DIR = settings.bmi_svc_template_dir

API_HOST = settings.bmi_svc_host
API_PORT = settings.bmi_svc_port
API_RELOAD = settings.bmi_svc_reload
