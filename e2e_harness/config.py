"""
Configuration

Resolves run settings from three layers:
  1. explicit overrides (``--set key=value`` on the command line)
  2. environment variables (``E2E_`` + key, dots become underscores)
  3. a ``key=value`` properties file

Blank values are treated as unset at every layer.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.properties"
ENV_PREFIX = "E2E_"

TRUE_VALUES = {"true", "1", "yes", "on"}


def env_var_name(key: str) -> str:
    """Map a config key like ``retry.count`` to ``E2E_RETRY_COUNT``."""
    return ENV_PREFIX + key.upper().replace(".", "_").replace("-", "_")


class ConfigSource:
    """
    Layered key/value lookup.

    The file is read once at construction time. Environment lookups are
    resolved on every call so that ``monkeypatch.setenv`` style overrides
    work in tests, but a RunSettings snapshot should be taken once per run.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Optional[str]]] = None,
        overrides: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        path: Optional[Path] = None,
    ):
        self._values: Dict[str, str] = {
            k: v for k, v in (values or {}).items() if v is not None
        }
        self._overrides: Dict[str, str] = dict(overrides or {})
        self._environ = environ if environ is not None else os.environ
        self.path = path

    @classmethod
    def load(
        cls,
        path: Union[str, Path] = DEFAULT_CONFIG_PATH,
        overrides: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ConfigSource":
        """Load the properties file. A missing or unreadable file is fatal."""
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Failed to load configuration from {path}: file not found")
        try:
            values = dotenv_values(path, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to load configuration from {path}: {e}") from e

        logger.info(f"Loaded {len(values)} config keys from {path}")
        return cls(values=values, overrides=overrides, environ=environ, path=path)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        candidates = (
            self._overrides.get(key),
            self._environ.get(env_var_name(key)),
            self._values.get(key),
        )
        for value in candidates:
            if value is not None and value.strip():
                return value.strip()
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        return value.lower() in TRUE_VALUES

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        try:
            return int(value)
        except (TypeError, ValueError):
            if value is not None:
                logger.warning(f"[WARN] Invalid integer for '{key}': {value!r}, using {default}")
            return default


class CheckoutDetails(BaseModel):
    """Fixture data typed into the checkout form."""

    model_config = ConfigDict(frozen=True)

    full_name: str = "Ramesh"
    address: str = "3rd Cross Street, Chennai"
    card_number: str = "1234 5647 4856 4656"
    card_expiry: str = "12/12"
    card_cvc: str = "123"


class RunSettings(BaseModel):
    """Immutable snapshot of the resolved configuration for one run."""

    model_config = ConfigDict(frozen=True)

    browser: str = "chrome"
    headless: bool = False
    maximize_window: bool = False
    retry_count: int = 1
    screenshot_on_pass: bool = False
    screenshot_mode: str = "base64"
    report_dir: str = "reports"
    env: str = "QA"
    author: Optional[str] = None
    base_url: Optional[str] = None
    timeout_ms: int = 30000
    workers: int = 1
    parallel: str = "methods"
    data_file: Optional[str] = None
    data_sheet: str = "Sheet1"
    username: Optional[str] = None
    password: Optional[str] = None
    checkout: CheckoutDetails = CheckoutDetails()

    @classmethod
    def from_source(cls, source: ConfigSource) -> "RunSettings":
        defaults = CheckoutDetails()
        checkout = CheckoutDetails(
            full_name=source.get("checkout.full.name", defaults.full_name),
            address=source.get("checkout.address", defaults.address),
            card_number=source.get("checkout.card.number", defaults.card_number),
            card_expiry=source.get("checkout.card.expiry", defaults.card_expiry),
            card_cvc=source.get("checkout.card.cvc", defaults.card_cvc),
        )

        screenshot_mode = (source.get("screenshot.mode", "base64") or "base64").lower()
        if screenshot_mode not in ("base64", "file"):
            logger.warning(f"[WARN] Unknown screenshot.mode {screenshot_mode!r}, using base64")
            screenshot_mode = "base64"

        parallel = (source.get("parallel", "methods") or "methods").lower()
        if parallel not in ("methods", "classes", "none"):
            logger.warning(f"[WARN] Unknown parallel mode {parallel!r}, using methods")
            parallel = "methods"

        return cls(
            browser=source.get("browser", "chrome"),
            headless=source.get_bool("headless"),
            maximize_window=source.get_bool("maximize.window"),
            retry_count=max(0, source.get_int("retry.count", 1)),
            screenshot_on_pass=source.get_bool("screenshot.on.pass"),
            screenshot_mode=screenshot_mode,
            report_dir=source.get("report.dir", "reports"),
            env=source.get("env", "QA"),
            author=source.get("name"),
            base_url=source.get("base.url"),
            timeout_ms=max(0, source.get_int("timeout.ms", 30000)),
            workers=max(1, source.get_int("workers", 1)),
            parallel=parallel,
            data_file=source.get("data.file"),
            data_sheet=source.get("data.sheet", "Sheet1"),
            username=source.get("login.username"),
            password=source.get("login.password"),
            checkout=checkout,
        )


def parse_overrides(pairs) -> Dict[str, str]:
    """Parse ``key=value`` strings given on the command line."""
    overrides = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ConfigError(f"Invalid override {pair!r}, expected key=value")
        key, value = pair.split("=", 1)
        overrides[key.strip()] = value.strip()
    return overrides
