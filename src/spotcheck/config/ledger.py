"""Defaults for mismatch ledger lookups."""

from __future__ import annotations

from dataclasses import dataclass

from spotcheck.domain.model.enums import SpotCheckDataSource

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_DATASOURCE = SpotCheckDataSource.LBDC
DEFAULT_PAGE_LIMIT = 50


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    default_datasource: SpotCheckDataSource = DEFAULT_DATASOURCE
    page_limit: int = DEFAULT_PAGE_LIMIT


def get_ledger_config() -> LedgerConfig:
    raw_datasource = optional_env_var("SPOTCHECK_DEFAULT_DATASOURCE")
    raw_limit = optional_env_var("SPOTCHECK_PAGE_LIMIT")

    datasource = DEFAULT_DATASOURCE
    if raw_datasource is not None:
        try:
            datasource = SpotCheckDataSource(raw_datasource.lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown datasource: {raw_datasource}") from exc

    page_limit = DEFAULT_PAGE_LIMIT
    if raw_limit is not None:
        try:
            page_limit = int(raw_limit)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid page limit: {raw_limit}") from exc
        if page_limit < 0:
            raise ConfigurationError("Page limit must be non-negative")

    return LedgerConfig(default_datasource=datasource, page_limit=page_limit)
