"""
Initializes the Dynaconf settings object for the wb_connector component.
This module is the single source of truth for all configuration.

Any key can be overridden from the environment, e.g.
WB_CONNECTOR_CONNECTOR__TIMEOUT=60.
"""

from pathlib import Path
from dynaconf import Dynaconf

PACKAGE_ROOT = Path(__file__).parent

settings = Dynaconf(
    root_path=PACKAGE_ROOT,
    settings_files=["config/settings.toml"],
    secrets=["config/.secrets.toml"],
    envvar_prefix="WB_CONNECTOR",
    merge_enabled=True,
)
