"""Run configuration."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class RunConfig(BaseSettings):
    """Inputs shared by every check in a run.

    Loads from environment variables prefixed with ``ANCHORCHECK_``:
        ANCHORCHECK_HOME_DOMAIN, ANCHORCHECK_SEPS, ANCHORCHECK_ASSET_CODE

    Attributes
    ----------
    home_domain
        Origin hosting ``/.well-known/stellar.toml``. ``https://`` is assumed
        when no scheme is given.
    seps
        SEP numbers whose suites should run.
    asset_code
        Asset to exercise. When omitted, the first enabled asset advertised by
        the server is adopted (see `discover_asset_code`).
    sep_config
        Free-form identifiers consumed by individual suites.
    """

    home_domain: str
    seps: list[int] = Field(default_factory=lambda: [1])
    asset_code: str | None = None
    verbose: bool = False
    sep_config: dict[str, Any] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="ANCHORCHECK_",
    )

    @field_validator("home_domain")
    @classmethod
    def normalize_home_domain(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("home_domain must not be empty")
        if "://" not in v:
            v = f"https://{v}"
        return v.rstrip("/")

    @property
    def toml_url(self) -> str:
        return f"{self.home_domain}/.well-known/stellar.toml"

    def discover_asset_code(self, asset_code: str) -> str:
        """Adopt ``asset_code`` unless one was configured or already discovered.

        The first discovered value wins; later calls return it unchanged.
        """
        if self.asset_code is None:
            logger.info("Using discovered asset code %s", asset_code)
            self.asset_code = asset_code
        return self.asset_code
