# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
from pathlib import Path

import pytest

from pkarr.configuration import DEFAULT_RELAY, ClientConfiguration, load_configuration


class TestClientConfiguration:

    def test_defaults(self) -> None:
        configuration = ClientConfiguration()
        assert configuration.relays == [DEFAULT_RELAY]
        assert configuration.timeout == 30.0
        assert configuration.log_level == 'WARNING'

    def test_normalization(self) -> None:
        configuration = ClientConfiguration(relays=' https://relay.example.com/ ', timeout=5, log_level='debug')  # pyright: ignore[reportArgumentType]
        assert configuration.relays == ['https://relay.example.com']
        assert configuration.timeout == 5.0
        assert isinstance(configuration.timeout, float)
        assert configuration.log_level == 'DEBUG'

    def test_validation(self) -> None:
        with pytest.raises(ValueError, match='At least one relay must be configured'):
            ClientConfiguration(relays=[])
        with pytest.raises(ValueError, match='At least one relay must be configured'):
            ClientConfiguration(relays=['', ' '])
        with pytest.raises(ValueError, match='Relay URL must use http or https'):
            ClientConfiguration(relays=['ftp://relay.example.com'])
        with pytest.raises(ValueError, match='The timeout must be a positive number'):
            ClientConfiguration(timeout=0)
        with pytest.raises(ValueError, match='Invalid log level'):
            ClientConfiguration(log_level='chatty')

    def test_wrong_types(self) -> None:
        # values that come from a JSON file can have any type
        for relays in ([1], {'url': 'https://relay.example.com'}, None):
            with pytest.raises(ValueError, match='The relays must be a URL or a list of URLs'):
                ClientConfiguration.from_mapping({'relays': relays})
        for timeout in (None, True, [5], 'NaN'):
            with pytest.raises(ValueError, match='The timeout must be a positive number'):
                ClientConfiguration.from_mapping({'timeout': timeout})
        for log_level in (10, None):
            with pytest.raises(ValueError, match='Invalid log level'):
                ClientConfiguration.from_mapping({'log_level': log_level})

    def test_from_mapping(self) -> None:
        configuration = ClientConfiguration.from_mapping({'relays': ['http://localhost:6881'], 'timeout': 2.5})
        assert configuration.relays == ['http://localhost:6881']
        assert configuration.timeout == 2.5
        with pytest.raises(ValueError, match='Unknown configuration settings: colour'):
            ClientConfiguration.from_mapping({'colour': 'blue'})

    def test_environment(self) -> None:
        environ = {'PKARR_RELAYS': 'https://one.example.com, https://two.example.com/', 'PKARR_TIMEOUT': '7', 'PKARR_LOG_LEVEL': 'info'}
        configuration = ClientConfiguration().updated_from_environment(environ)
        assert configuration.relays == ['https://one.example.com', 'https://two.example.com']
        assert configuration.timeout == 7.0
        assert configuration.log_level == 'INFO'

        # empty variables are ignored
        assert ClientConfiguration().updated_from_environment({'PKARR_RELAYS': ''}) == ClientConfiguration()

        with pytest.raises(ValueError, match='Invalid value for PKARR_TIMEOUT'):
            ClientConfiguration().updated_from_environment({'PKARR_TIMEOUT': 'soon'})


class TestLoadConfiguration:

    def test_file_and_environment(self, tmp_path: Path) -> None:
        config_file = tmp_path / 'config.json'
        config_file.write_text(json.dumps({'relays': ['https://file.example.com'], 'timeout': 12}))

        configuration = load_configuration(config_file, environ={})
        assert configuration.relays == ['https://file.example.com']
        assert configuration.timeout == 12.0

        # environment variables override the configuration file
        configuration = load_configuration(config_file, environ={'PKARR_TIMEOUT': '3'})
        assert configuration.relays == ['https://file.example.com']
        assert configuration.timeout == 3.0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match='Configuration file not found'):
            load_configuration(tmp_path / 'missing.json', environ={})

    def test_default_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('HOME', str(tmp_path))
        assert load_configuration(environ={}) == ClientConfiguration()

        config_file = tmp_path / '.config' / 'pkarr' / 'config.json'
        config_file.parent.mkdir(parents=True)
        config_file.write_text(json.dumps({'log_level': 'error'}))
        assert load_configuration(environ={}).log_level == 'ERROR'

    def test_invalid_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / 'config.json'
        config_file.write_text('{not json')
        with pytest.raises(ValueError, match='Invalid configuration file'):
            load_configuration(config_file, environ={})
        config_file.write_text('[]')
        with pytest.raises(ValueError, match='expected a JSON object'):
            load_configuration(config_file, environ={})
        config_file.write_text(json.dumps({'relays': [1], 'log_level': 10}))
        with pytest.raises(ValueError, match='The relays must be a URL or a list of URLs'):
            load_configuration(config_file, environ={})
