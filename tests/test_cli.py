# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from datetime import UTC, datetime
from pathlib import Path

import dns.flags
import dns.name
import dns.rdatatype
import pytest
from cryptography.hazmat.primitives.asymmetric.ed448 import Ed448PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat

from pkarr.cli import build_message, main, parse_resource_record
from pkarr.records import Record
from pkarr.trust import decode_identity, encode_identity, generate_private_key, load_private_key, save_private_key


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('HOME', str(tmp_path / 'home'))
    for variable in ('PKARR_RELAYS', 'PKARR_TIMEOUT', 'PKARR_LOG_LEVEL'):
        monkeypatch.delenv(variable, raising=False)


class TestResourceRecords:

    def test_parse(self) -> None:
        rrset = parse_resource_record('_foo 30 TXT "hello world"')
        assert rrset.name == dns.name.from_text('_foo.')
        assert rrset.ttl == 30
        assert rrset.rdtype == dns.rdatatype.TXT
        assert rrset[0].strings == (b'hello world',)

        rrset = parse_resource_record('www.example. 3600 CNAME target')
        assert rrset[0].target == dns.name.from_text('target.')

    def test_parse_idna(self) -> None:
        rrset = parse_resource_record('bücher. 60 A 10.0.0.1')
        assert rrset.name.to_text() == 'xn--bcher-kva.'

    def test_parse_errors(self) -> None:
        for text in ('_foo 30 A', '_foo thirty A 10.0.0.1', '_foo 30 BOGUS data', '_foo 30 A not-an-address', '_foo -1 A 10.0.0.1', '_foo 2147483648 A 10.0.0.1'):
            with pytest.raises(ValueError, match='Invalid resource record'):
                parse_resource_record(text)

    def test_build_message(self) -> None:
        message = build_message(['_foo 30 A 10.0.0.1', '_foo 30 A 10.0.0.2', '_foo 30 TXT "bar"'])
        assert message.id == 0
        assert message.flags & dns.flags.QR
        assert len(message.answer) == 2
        assert {rdata.to_text() for rdata in message.answer[0]} == {'10.0.0.1', '10.0.0.2'}


class TestCommands:

    def test_keygen_and_identity(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        keyfile = tmp_path / 'key.pem'
        assert main(['keygen', str(keyfile)]) == 0
        identity = capsys.readouterr().out.strip()
        assert decode_identity(identity) == load_private_key(keyfile).public_key()

        assert main(['identity', str(keyfile)]) == 0
        assert capsys.readouterr().out.strip() == identity

        # existing keys are never overwritten
        assert main(['keygen', str(keyfile)]) == 1
        assert 'already exists' in capsys.readouterr().err

    def test_keygen_with_password(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        keyfile = tmp_path / 'key.pem'
        assert main(['keygen', str(keyfile), '--password', 'secret']) == 0
        identity = capsys.readouterr().out.strip()
        assert main(['identity', str(keyfile), '--password', 'secret']) == 0
        assert capsys.readouterr().out.strip() == identity
        assert main(['identity', str(keyfile)]) == 1
        assert capsys.readouterr().err.startswith('error:')

    def test_decode(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        private_key = generate_private_key()
        identity = encode_identity(private_key.public_key())
        record = Record.new(private_key, build_message(['_foo 30 TXT "bar"']), datetime(2024, 6, 16, 11, 17, 42, 5000, tzinfo=UTC))
        payload = tmp_path / 'payload.bin'
        payload.write_bytes(record.to_wire())

        assert main(['decode', identity, str(payload)]) == 0
        output = capsys.readouterr().out
        assert f'identity:  {identity}' in output
        assert 'timestamp: 2024-06-16T11:17:42.005+00:00' in output
        assert '_foo. 30 IN TXT "bar"' in output

        other_identity = encode_identity(generate_private_key().public_key())
        assert main(['decode', other_identity, str(payload)]) == 1
        assert 'invalid payload: invalid signature' in capsys.readouterr().err

    def test_decode_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        identity = encode_identity(generate_private_key().public_key())
        assert main(['decode', identity, str(tmp_path / 'missing.bin')]) == 1
        assert capsys.readouterr().err.startswith('error:')

    def test_publish_invalid_record(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        keyfile = tmp_path / 'key.pem'
        save_private_key(generate_private_key(), keyfile)
        assert main(['--relay', 'http://localhost:1', 'publish', str(keyfile), '_foo 30 A nowhere']) == 1
        assert 'Invalid resource record' in capsys.readouterr().err

    def test_invalid_configuration(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(['--relay', 'ftp://relay.example.com', 'identity', str(tmp_path / 'key.pem')]) == 1
        assert 'Relay URL must use http or https' in capsys.readouterr().err
        assert main(['--config', str(tmp_path / 'missing.json'), 'identity', str(tmp_path / 'key.pem')]) == 1
        assert 'Configuration file not found' in capsys.readouterr().err

    def test_invalid_configuration_types(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config_file = tmp_path / 'config.json'
        config_file.write_text('{"relays": [1]}')
        assert main(['--config', str(config_file), 'identity', str(tmp_path / 'key.pem')]) == 1
        assert 'The relays must be a URL or a list of URLs' in capsys.readouterr().err

    def test_unsupported_key(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        keyfile = tmp_path / 'key.pem'
        keyfile.write_bytes(Ed448PrivateKey.generate().private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()))
        assert main(['identity', str(keyfile)]) == 1
        assert 'Unsupported key type' in capsys.readouterr().err
