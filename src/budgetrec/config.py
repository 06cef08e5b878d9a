from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Budget plan-of-record
    BUDGET_CSV_PATH: str = Field(
        "data/budget/budget2025.csv",
        description="Semicolon-delimited budget file, re-read on every request"
    )

    # Actuals database
    DATABASE_URL: Optional[str] = Field(
        None,
        description="Full SQLAlchemy URL. Overrides the DATABASE_SERVER/NAME/USER/PASSWORD settings when set."
    )
    DATABASE_SERVER: Optional[str] = Field(None, description="SQL Server host")
    DATABASE_NAME: Optional[str] = Field(None, description="SQL Server database")
    DATABASE_USER: Optional[str] = Field(None, description="SQL Server login")
    DATABASE_PASSWORD: Optional[SecretStr] = Field(None, description="SQL Server password")
    DATABASE_DRIVER: str = Field("ODBC Driver 17 for SQL Server", description="ODBC driver name")
    ACTUALS_DB_SCHEMA: Optional[str] = Field(
        "PowerBIData",
        description="Schema holding the time-entry and employee tables"
    )

    # Reconciliation scope
    RECOGNIZED_TEAMS: List[str] = Field(
        default_factory=lambda: ["CST3", "CST4", "CST5"],
        description="Team storage ids the actuals query and the join are restricted to"
    )
    PERIOD_STRICT: bool = Field(
        False,
        description="Reject unparseable periods instead of falling back to the current month"
    )

    # Insight thresholds (percent)
    SUMMARY_VARIANCE_ALERT_PCT: float = Field(10.0, description="Overall variance that raises an alert")
    TEAM_VARIANCE_ALERT_PCT: float = Field(15.0, description="Team variance that raises a recommendation")
    EMPLOYEE_VARIANCE_ALERT_PCT: float = Field(20.0, description="Employee variance flagged for review")
    ON_TRACK_VARIANCE_PCT: float = Field(5.0, description="Employee variance still considered on track")

    # LLM
    OPENAI_API_KEY: SecretStr | None = Field(None, description="OpenAI API Key")
    OPENAI_MODEL_AGENT: str = Field("gpt-4o", description="Model for the budget analysis assistant")
    OPENAI_TEMPERATURE: float = Field(0.1, description="Sampling temperature for the assistant")
    AGENT_MAX_STEPS: int = Field(5, description="Max tool-calling rounds per question")

    LOG_LEVEL: str = Field("INFO", description="Root log level")

# Singleton instance
settings = Settings()
