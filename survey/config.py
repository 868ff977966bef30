"""Survey configuration."""
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode, urlparse, urlunparse, parse_qsl

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Survey settings loaded from SURVEY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SURVEY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Submission: local | form | json
    strategy: str = "local"
    endpoint_url: Optional[str] = None
    results_url: Optional[str] = None
    request_timeout_s: float = 10.0

    # Local tally
    store_path: Path = Path("./data/survey.json")

    # Results view
    display_limit: int = 6

    def resolved_results_url(self) -> Optional[str]:
        """Results URL, defaulting to the endpoint with action=results."""
        if self.results_url:
            return self.results_url
        if not self.endpoint_url:
            return None
        parsed = urlparse(self.endpoint_url)
        query = parse_qsl(parsed.query)
        query.append(("action", "results"))
        return urlunparse(parsed._replace(query=urlencode(query)))
