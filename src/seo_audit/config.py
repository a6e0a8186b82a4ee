from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
from pathlib import Path
import json
import logging
import os

from seo_audit.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_REDIRECT_HOP_TIMEOUT_SECONDS,
    DEFAULT_DNS_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RETRIES,
    INITIAL_BACKOFF_DELAY_SECONDS,
    DEFAULT_CACHE_TTL_MINUTES,
)

load_dotenv()  # Loads variables from .env file

logger = logging.getLogger(__name__)


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class AuditConfig:
    """Runtime configuration for the audit engine."""
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    redirect_hop_timeout: float = DEFAULT_REDIRECT_HOP_TIMEOUT_SECONDS
    dns_timeout: float = DEFAULT_DNS_TIMEOUT_SECONDS
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = INITIAL_BACKOFF_DELAY_SECONDS
    cache_ttl_minutes: int = DEFAULT_CACHE_TTL_MINUTES
    audit_timeout: Optional[float] = None  # None = no caller-level timeout
    log_level: str = "INFO"

    # PageSpeed Insights API
    google_psi_api_key: Optional[str] = None
    psi_strategy: str = "mobile"  # 'mobile' or 'desktop'
    psi_locale: str = "en"

    @classmethod
    def from_env(cls) -> "AuditConfig":
        """Load configuration from environment variables.

        Returns:
            AuditConfig: Configuration instance with values from environment
        """
        return cls(
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
            timeout=float(os.getenv("TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))),
            probe_timeout=float(os.getenv("PROBE_TIMEOUT", str(DEFAULT_PROBE_TIMEOUT_SECONDS))),
            redirect_hop_timeout=float(
                os.getenv("REDIRECT_HOP_TIMEOUT", str(DEFAULT_REDIRECT_HOP_TIMEOUT_SECONDS))
            ),
            dns_timeout=float(os.getenv("DNS_TIMEOUT", str(DEFAULT_DNS_TIMEOUT_SECONDS))),
            max_redirects=int(os.getenv("MAX_REDIRECTS", str(DEFAULT_MAX_REDIRECTS))),
            max_retries=int(os.getenv("MAX_RETRIES", str(DEFAULT_MAX_RETRIES))),
            retry_delay=float(os.getenv("RETRY_DELAY", str(INITIAL_BACKOFF_DELAY_SECONDS))),
            cache_ttl_minutes=int(os.getenv("CACHE_TTL_MINUTES", str(DEFAULT_CACHE_TTL_MINUTES))),
            audit_timeout=_optional_float(os.getenv("AUDIT_TIMEOUT")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            # PageSpeed Insights
            google_psi_api_key=os.getenv("GOOGLE_PSI_API_KEY"),
            psi_strategy=os.getenv("PSI_STRATEGY", "mobile"),
            psi_locale=os.getenv("PSI_LOCALE", "en"),
        )


@dataclass
class AnalysisThresholds:
    """Configurable thresholds for SEO checks."""

    # Meta tags
    title_min: int = 30
    title_max: int = 60
    meta_description_min: int = 120
    meta_description_max: int = 160

    # Images
    lazy_load_threshold: int = 3  # Images after this position should be lazy

    # Links
    max_external_without_nofollow: int = 10

    # Robots
    robots_max_bytes: int = 500_000  # 500KB

    # Sitemap (protocol cap)
    sitemap_max_urls: int = 50_000

    # Redirects
    redirect_max_hops: int = 5
    redirect_long_chain_threshold: int = 2  # Chains longer than this are "long"

    @classmethod
    def from_env(cls) -> "AnalysisThresholds":
        """Load thresholds from environment variables.

        Environment variables should be prefixed with SEO_THRESHOLD_
        e.g., SEO_THRESHOLD_TITLE_MAX=65

        Returns:
            AnalysisThresholds with values from environment
        """
        thresholds = cls()
        prefix = "SEO_THRESHOLD_"

        for field_name in thresholds.__dataclass_fields__:
            env_key = f"{prefix}{field_name.upper()}"
            env_value = os.getenv(env_key)

            if env_value is not None:
                field_type = thresholds.__dataclass_fields__[field_name].type
                try:
                    if field_type == int:
                        setattr(thresholds, field_name, int(env_value))
                    elif field_type == float:
                        setattr(thresholds, field_name, float(env_value))
                except ValueError:
                    logger.warning(
                        f"Ignoring {env_key}={env_value!r}: not a valid {field_type.__name__}"
                    )

        return thresholds

    @classmethod
    def from_file(cls, path: str) -> "AnalysisThresholds":
        """Load thresholds from a JSON configuration file.

        Args:
            path: Path to JSON configuration file

        Returns:
            AnalysisThresholds with values from file
        """
        thresholds = cls()
        file_path = Path(path)

        if not file_path.exists():
            return thresholds

        with open(file_path, 'r') as f:
            config = json.load(f)

        threshold_config = config.get('thresholds', config)

        for field_name in thresholds.__dataclass_fields__:
            if field_name in threshold_config:
                setattr(thresholds, field_name, threshold_config[field_name])

        return thresholds

    def to_dict(self) -> dict:
        """Convert thresholds to dictionary.

        Returns:
            Dictionary of all threshold values
        """
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }

    def save_to_file(self, path: str) -> None:
        """Save current thresholds to a JSON file.

        Args:
            path: Path to save configuration
        """
        with open(path, 'w') as f:
            json.dump({'thresholds': self.to_dict()}, f, indent=2)


# Global default thresholds instance
default_thresholds = AnalysisThresholds()
