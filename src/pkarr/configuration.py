# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from os import PathLike
from pathlib import Path
from typing import Any, ClassVar, Self

__all__ = 'ClientConfiguration', 'load_configuration'


DEFAULT_RELAY = 'https://relay.pkarr.org'
DEFAULT_CONFIG_FILE = Path('~/.config/pkarr/config.json')

ENV_PREFIX = 'PKARR_'

LOG_LEVELS = frozenset({'CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG'})


@dataclass(kw_only=True)
class ClientConfiguration:
    relays: list[str] = field(default_factory=lambda: [DEFAULT_RELAY])
    timeout: float = 30.0
    log_level: str = 'WARNING'

    _env_names_: ClassVar[Mapping[str, str]] = {
        'relays': f'{ENV_PREFIX}RELAYS',
        'timeout': f'{ENV_PREFIX}TIMEOUT',
        'log_level': f'{ENV_PREFIX}LOG_LEVEL',
    }

    def __post_init__(self) -> None:
        if isinstance(self.relays, str):
            self.relays = [self.relays]
        if not isinstance(self.relays, list | tuple) or not all(isinstance(relay, str) for relay in self.relays):
            raise ValueError(f'The relays must be a URL or a list of URLs: {self.relays!r}')
        self.relays = [relay.strip().rstrip('/') for relay in self.relays if relay.strip()]
        if not self.relays:
            raise ValueError('At least one relay must be configured')
        for relay in self.relays:
            if not relay.startswith(('http://', 'https://')):
                raise ValueError(f'Relay URL must use http or https: {relay!r}')
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, int | float | str):
            raise ValueError(f'The timeout must be a positive number: {self.timeout!r}')
        self.timeout = float(self.timeout)
        if not self.timeout > 0:
            raise ValueError(f'The timeout must be a positive number: {self.timeout!r}')
        if not isinstance(self.log_level, str):
            raise ValueError(f'Invalid log level: {self.log_level!r} (expected one of {', '.join(sorted(LOG_LEVELS))})')
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f'Invalid log level: {self.log_level!r} (expected one of {', '.join(sorted(LOG_LEVELS))})')

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        names = {f.name for f in fields(cls)}
        unknown = set(data) - names
        if unknown:
            raise ValueError(f'Unknown configuration settings: {', '.join(sorted(unknown))}')
        return cls(**data)

    def updated_from_environment(self, environ: Mapping[str, str] = os.environ) -> Self:
        settings: dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        for name, variable in self._env_names_.items():
            value = environ.get(variable)
            if not value:
                continue
            match name:
                case 'relays':
                    settings[name] = value.split(',')
                case 'timeout':
                    try:
                        settings[name] = float(value)
                    except ValueError:
                        raise ValueError(f'Invalid value for {variable}: {value!r}') from None
                case _:
                    settings[name] = value
        return self.__class__(**settings)


def load_configuration(path: str | PathLike[str] | None = None, *, environ: Mapping[str, str] = os.environ) -> ClientConfiguration:
    """
    Load the client configuration.

    Settings are read from the JSON file at path (if no path is given, the
    default configuration file is used when it exists) and the environment
    variables override them.
    """
    if path is not None:
        config_file = Path(path).expanduser()
        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_file}')
    else:
        config_file = DEFAULT_CONFIG_FILE.expanduser()
    if config_file.exists():
        try:
            data = json.loads(config_file.read_text())
        except json.JSONDecodeError as exc:
            raise ValueError(f'Invalid configuration file {config_file}: {exc}') from exc
        if not isinstance(data, dict):
            raise ValueError(f'Invalid configuration file {config_file}: expected a JSON object')
        configuration = ClientConfiguration.from_mapping(data)
    else:
        configuration = ClientConfiguration()
    return configuration.updated_from_environment(environ)
