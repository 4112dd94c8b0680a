"""
Configuration loading.

Settings come from built-in defaults, optionally overridden by a YAML file and
by environment variables (a local .env file is honoured). The resulting
Settings object is passed explicitly to the Coda client, the account directory
and the ledger fetcher.

Example config.yml:

    coda:
      doc_id: sz-gfMWR-I
      timeout: 30
    columns:
      amount: c-I5Fa-AJU-7
    audit:
      max_days: 100
"""

import logging
import os
from dataclasses import dataclass

import yaml
from dotenv import find_dotenv, load_dotenv

from ledger_audit.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.yml'

DEFAULTS = {
    "coda": {
        "api_key": "",
        "base_url": "https://coda.io/apis/v1",
        "doc_id": "sz-gfMWR-I",
        "transactions_table_id": "table-XeiKO3oHhz",
        "accounts_table_id": "grid-Jzlaq7_uYQ",
        "timeout": 30,
        "max_retries": 3,
        "retry_delay": 1.0,
    },
    "columns": {
        "account_name": "c-mwy2jqwnOQ",
        "account_type": "c-BjJ_UnF3Al",
        "date": "c-4ID4XR1ync",
        "debit": "c-FVYpl1uPC1",
        "credit": "c-VvaO1RyiJN",
        "amount": "c-I5Fa-AJU-7",
    },
    "audit": {
        "max_days": 100,
    },
}


@dataclass(frozen=True)
class CodaSettings:
    api_key: str
    base_url: str
    doc_id: str
    transactions_table_id: str
    accounts_table_id: str
    timeout: float
    max_retries: int
    retry_delay: float


@dataclass(frozen=True)
class ColumnSettings:
    account_name: str
    account_type: str
    date: str
    debit: str
    credit: str
    amount: str


@dataclass(frozen=True)
class AuditSettings:
    max_days: int


@dataclass(frozen=True)
class Settings:
    coda: CodaSettings
    columns: ColumnSettings
    audit: AuditSettings


def merge_config(overrides):
    """Shallow-merge a config mapping over the defaults, section by section."""
    merged = {section: dict(values) for section, values in DEFAULTS.items()}
    for section, values in (overrides or {}).items():
        if section not in merged:
            logger.warning(f"Ignoring unknown config section: {section}")
            continue
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        unknown = set(values) - set(merged[section])
        if unknown:
            logger.warning(f"Ignoring unknown keys in '{section}': {sorted(unknown)}")
        merged[section].update({k: v for k, v in values.items() if k in merged[section]})
    return merged


def read_config_file(path):
    """Read a YAML config file.

    Returns an empty mapping when the file does not exist.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            cfg = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to read config file {path}: {str(e)}")

    if not isinstance(cfg, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.debug(f"Loaded config from {path}")
    return cfg


def load_config(path=None) -> Settings:
    """Load settings from defaults, a YAML file and the environment.

    Args:
        path (str, optional): Config file. Falls back to the LEDGER_AUDIT_CONFIG
            environment variable, then ./config.yml.

    Returns:
        Settings: Resolved settings

    Raises:
        ConfigError: If the file is invalid or a value has the wrong type
    """
    load_dotenv(find_dotenv(usecwd=True))

    if path is not None and not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")
    path = path or os.getenv('LEDGER_AUDIT_CONFIG', DEFAULT_CONFIG_FILE)

    merged = merge_config(read_config_file(path))

    api_key = os.getenv('CODA_API_KEY')
    if api_key:
        merged['coda']['api_key'] = api_key

    try:
        coda = merged['coda']
        settings = Settings(
            coda=CodaSettings(
                api_key=str(coda['api_key'] or ''),
                base_url=str(coda['base_url']).rstrip('/'),
                doc_id=str(coda['doc_id']),
                transactions_table_id=str(coda['transactions_table_id']),
                accounts_table_id=str(coda['accounts_table_id']),
                timeout=float(coda['timeout']),
                max_retries=int(coda['max_retries']),
                retry_delay=float(coda['retry_delay']),
            ),
            columns=ColumnSettings(**{k: str(v) for k, v in merged['columns'].items()}),
            audit=AuditSettings(max_days=int(merged['audit']['max_days'])),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {str(e)}")

    if settings.audit.max_days < 1:
        raise ConfigError(f"audit.max_days must be at least 1, got {settings.audit.max_days}")
    return settings
