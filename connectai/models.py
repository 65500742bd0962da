"""Configuration models for connectai."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class AppInfo(BaseModel):
    """Application identity shown by the version query."""

    name: str = "My Connect AI"
    version: str = "2.0.0"
    company: Optional[str] = None
    tagline: Optional[str] = None


class DisplayConfig(BaseModel):
    """Limits for rendering record lists."""

    max_records_to_show: int = Field(default=20, ge=1)
    preview_fields_count: int = Field(default=2, ge=0)


class UIConfig(BaseModel):
    """User-facing text and display settings."""

    display: DisplayConfig = Field(default_factory=DisplayConfig)
    messages: Dict[str, str] = Field(default_factory=dict)


class TableConfig(BaseModel):
    """Routing metadata for one CRM table."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    type: str = "unknown"
    keywords: List[str] = Field(default_factory=list)
    search_fields: List[str] = Field(default_factory=list, alias="searchFields")

    @field_validator("keywords")
    @classmethod
    def lowercase_keywords(cls, v: List[str]) -> List[str]:
        """Keywords are matched against lowercased queries."""
        return [keyword.lower() for keyword in v if keyword]


class CRMConfig(BaseModel):
    """CRM source configuration."""

    provider: str = "json"
    data_dir: Optional[str] = None
    tables: List[TableConfig] = Field(default_factory=list)


class AIConfig(BaseModel):
    """AI formatter configuration."""

    provider: Optional[str] = None
    model: Optional[str] = None
    max_tokens: int = 1000
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    system_prompt: str = "You are a helpful AI assistant."
    templates: Dict[str, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    format: str = "text"
    level: str = "WARNING"
    log_file: Optional[str] = None


class AppConfig(BaseModel):
    """Complete configuration model."""

    app: AppInfo = Field(default_factory=AppInfo)
    ui: UIConfig = Field(default_factory=UIConfig)
    crm: CRMConfig = Field(default_factory=CRMConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
