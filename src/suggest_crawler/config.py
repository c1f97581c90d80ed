from dotenv import load_dotenv
from pathlib import Path
from typing import List, Literal, Optional
import json
import os

from pydantic import BaseModel, Field, ValidationError

from suggest_crawler.exceptions import ConfigError

load_dotenv()  # Loads variables from .env file


PACKAGE_DIR = Path(__file__).resolve().parent

# Injected into every loaded page before links are queried.
DEFAULT_INJECT_SCRIPT = PACKAGE_DIR / "assets" / "dom_query.js"

# Links to documents ending with these extensions are never crawled.
FILTERED_EXTENSIONS = [".pdf", ".zip", ".tar", ".tar.gz", ".exe", ".mp4", ".mov"]


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    LOG_LVL = os.getenv("LOG_LVL", "INFO")
    CRAWLER_TYPE = os.getenv("CRAWLER_TYPE", "dynamic")  # 'dynamic' or 'static'
    CRAWLER_OUTPUT_DIR = os.getenv("CRAWLER_OUTPUT_DIR", "output")
    SERVICES_CONFIG = os.getenv("SERVICES_CONFIG", "data/services-data.json")


settings = Settings()


class CrawlerConfig(BaseModel):
    """
    Configuration shared by the dynamic and static crawlers.

    All fields are validated by Pydantic; defaults match the crawler's
    documented behaviour.
    """

    max_attempts: int = Field(
        default=3,
        description="Page load attempts before giving up on a URL",
        ge=1,
        le=10
    )

    idle_ms: int = Field(
        default=300,
        description="Quiet period with no in-flight resources before a page counts as loaded",
        ge=1
    )

    hard_ceiling_ms: int = Field(
        default=10000,
        description="Maximum wait for a page to finish loading, in milliseconds",
        ge=1
    )

    viewport_width: int = Field(
        default=1024,
        description="Viewport width; some sites only render navigation links at larger widths",
        ge=1
    )

    viewport_height: int = Field(
        default=1024,
        description="Viewport height",
        ge=1
    )

    filtered_extensions: List[str] = Field(
        default_factory=lambda: list(FILTERED_EXTENSIONS),
        description="Link targets ending with these extensions are dropped"
    )

    inject_script_path: str = Field(
        default=str(DEFAULT_INJECT_SCRIPT),
        description="DOM helper script injected into pages for link extraction"
    )

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for crawling"
    )

    launch_args: List[str] = Field(
        default_factory=list,
        description="Additional browser launch arguments"
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="Custom user agent. None keeps the engine's default."
    )

    request_timeout: int = Field(
        default=30,
        description="HTTP timeout for the static crawler, in seconds",
        ge=1
    )

    class Config:
        """Pydantic model configuration."""
        frozen = False
        validate_assignment = True

    @property
    def viewport(self) -> dict:
        return {"width": self.viewport_width, "height": self.viewport_height}

    @classmethod
    def from_env(cls) -> "CrawlerConfig":
        """Load configuration from environment variables.

        Variables are prefixed with CRAWLER_, e.g. CRAWLER_IDLE_MS=500.
        Unset variables keep their defaults.

        Returns:
            CrawlerConfig: Configuration instance with values from environment
        """
        values = {}
        env_map = {
            "max_attempts": "CRAWLER_MAX_ATTEMPTS",
            "idle_ms": "CRAWLER_IDLE_MS",
            "hard_ceiling_ms": "CRAWLER_HARD_CEILING_MS",
            "viewport_width": "CRAWLER_VIEWPORT_WIDTH",
            "viewport_height": "CRAWLER_VIEWPORT_HEIGHT",
            "inject_script_path": "CRAWLER_INJECT_SCRIPT",
            "browser_type": "CRAWLER_BROWSER",
            "user_agent": "CRAWLER_USER_AGENT",
            "request_timeout": "CRAWLER_REQUEST_TIMEOUT",
        }
        for field_name, env_key in env_map.items():
            env_value = os.getenv(env_key)
            if env_value is not None:
                values[field_name] = env_value

        headless = os.getenv("CRAWLER_HEADLESS")
        if headless is not None:
            values["headless"] = headless.lower() not in ("0", "false", "no")

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid crawler environment configuration: {e}") from e


class ServiceClass(BaseModel):
    """One classifier class and the documentation page describing it."""

    class_name: str = Field(min_length=1)
    doc_link: str = Field(min_length=1)
    doc_name: Optional[str] = Field(
        default=None,
        description="Comma separated names the documentation uses for the service"
    )


class ServicesConfig(BaseModel):
    """Contents of the services data file driving a collection run."""

    nlc_class_info: List[ServiceClass] = Field(min_length=1)


def load_services_config(path: str) -> ServicesConfig:
    """Load and validate a services data file.

    Args:
        path: Path to the JSON services file

    Returns:
        Validated ServicesConfig

    Raises:
        ConfigError: If the file is missing, not JSON, or fails validation
    """
    file_path = Path(path)

    if not file_path.exists():
        raise ConfigError(f"Unable to resolve config file: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Unable to load config file {file_path}: {e}") from e

    try:
        return ServicesConfig(**data)
    except (TypeError, ValidationError) as e:
        raise ConfigError(
            f"Config file must contain nlc_class_info array of class name and links: {e}"
        ) from e
