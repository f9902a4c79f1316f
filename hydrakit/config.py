"""
Runtime configuration.

Configuration is an immutable snapshot passed explicitly to contexts,
engines and loaders; there is no process-wide instance. It can be built
from a mapping or loaded from a YAML file.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ruamel.yaml import YAML

from .errors import ConfigurationError

_yaml = YAML(typ="safe")

NONCE_PLACEHOLDER = "{{nonce}}"


def default_csp_policy() -> Dict[str, List[str]]:
    """Strict CSP policy with nonce placeholders for scripts and styles."""
    return {
        "default-src": ["'self'"],
        "script-src": ["'self'", f"'nonce-{NONCE_PLACEHOLDER}'"],
        "style-src": ["'self'", f"'nonce-{NONCE_PLACEHOLDER}'", "'unsafe-hashes'"],
        "img-src": ["'self'", "data:"],
        "font-src": ["'self'"],
        "connect-src": ["'self'"],
        "base-uri": ["'self'"],
        "form-action": ["'self'"],
        "frame-ancestors": ["'none'"],
        "object-src": ["'none'"],
    }


@dataclass(frozen=True)
class Configuration:
    # Core application settings
    default_locale: str = "en"
    app_environment: str = "development"
    development_enabled: bool = False

    # Templates
    template_paths: Tuple[str, ...] = ()
    template_extension: str = ".sfc"
    template_ignore: Tuple[str, ...] = ()
    cache_parsed_templates: bool = True
    raw_allowlist: Tuple[str, ...] = ("content",)

    # Security
    csrf_token_name: str = "csrf_token"
    nonce_header_name: str = "nonce"
    csp_enabled: bool = True
    auto_nonce: bool = True
    csp_policy: Dict[str, List[str]] = field(default_factory=default_csp_policy)

    # Feature flags
    features: Dict[str, Any] = field(default_factory=dict)

    # Site
    site_host: Optional[str] = None
    site_ssl_enabled: bool = False
    api_base_url: Optional[str] = None

    # Hydration
    schemas_dir: Optional[str] = None

    # ---- derived values ----

    def api_url(self) -> Optional[str]:
        """Explicit API base URL, else one built from the site host."""
        if self.api_base_url:
            return self.api_base_url
        if not self.site_host:
            return None
        protocol = "https" if self.site_ssl_enabled else "http"
        return f"{protocol}://{self.site_host}/api"

    def is_development(self) -> bool:
        return self.development_enabled or self.app_environment == "development"

    def is_production(self) -> bool:
        return self.app_environment == "production"

    def feature_enabled(self, name: str) -> bool:
        return bool(self.features.get(name, False))

    def nonce_required(self) -> bool:
        """True when the CSP policy references the nonce placeholder."""
        if not self.csp_enabled:
            return False
        return any(
            NONCE_PLACEHOLDER in source
            for sources in self.csp_policy.values()
            for source in sources
        )

    # ---- validation / construction ----

    def validate(self, check_paths: bool = True) -> "Configuration":
        """
        Checks the values.

        Args:
            check_paths: Also require template paths to exist

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: Listing every problem found
        """
        problems: List[str] = []

        if not self.default_locale:
            problems.append("default_locale cannot be empty")
        if not self.template_extension.startswith("."):
            problems.append(f"template_extension must start with '.': {self.template_extension}")
        if check_paths:
            for path in self.template_paths:
                if not Path(path).is_dir():
                    problems.append(f"Template path does not exist: {path}")
        if not isinstance(self.features, dict):
            problems.append("features must be a mapping")
        if not isinstance(self.csp_policy, dict):
            problems.append("csp_policy must be a mapping")

        if problems:
            raise ConfigurationError(problems)
        return self

    def replace(self, **changes: Any) -> "Configuration":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Configuration":
        """
        Builds a configuration from a plain mapping (e.g. parsed YAML).

        Raises:
            ConfigurationError: On unknown keys
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigurationError([f"Unknown configuration key: {key}" for key in unknown])

        values: Dict[str, Any] = dict(raw)
        for key in ("template_paths", "template_ignore", "raw_allowlist"):
            if key in values:
                values[key] = tuple(str(v) for v in (values[key] or ()))
        for key in ("features", "csp_policy"):
            if key in values and values[key] is None:
                values[key] = {}
        return cls(**values)


def _read_yaml_map(path: Path) -> dict:
    if not path.is_file():
        raise ConfigurationError([f"Configuration file not found: {path}"])
    raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError([f"YAML must be a mapping: {path}"])
    return raw


def load_config(path: Path, check_paths: bool = False) -> Configuration:
    """
    Loads and validates configuration from a YAML file.

    Relative template paths and schemas_dir are resolved against the
    directory of the file.
    """
    path = Path(path)
    raw = _read_yaml_map(path)
    base = path.parent

    if "template_paths" in raw and raw["template_paths"]:
        raw["template_paths"] = [str((base / p).resolve()) for p in raw["template_paths"]]
    if raw.get("schemas_dir"):
        raw["schemas_dir"] = str((base / raw["schemas_dir"]).resolve())

    return Configuration.from_dict(raw).validate(check_paths=check_paths)


__all__ = [
    "NONCE_PLACEHOLDER",
    "Configuration",
    "default_csp_policy",
    "load_config",
]
