from pydantic_settings import SettingsConfigDict

from .analytics import AnalyticsSettings
from .workload import WorkloadSettings


class Settings(AnalyticsSettings, WorkloadSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "teamstats"
    debug: bool = False
