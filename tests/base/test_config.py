"""Tests for oracle settings resolution."""

import argparse

import pytest

from vrf_oracle.base.config import OracleSettings, add_args, load_settings
from vrf_oracle.errors import ConfigError
from vrf_oracle.ledger.pubkey import Pubkey

PROGRAM_ID = str(Pubkey(bytes([7]) * 32))


def _args(*argv: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    add_args(parser)
    return parser.parse_args(list(argv))


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings(
            _args("--oracle.program_id", PROGRAM_ID, "--oracle.oracle_keypair_path", "oracle.json"),
            environ={},
        )
        assert settings.rpc_url == "http://127.0.0.1:8899"
        assert settings.prover == "ecvrf"
        assert settings.poll_interval_seconds == 3.0
        assert settings.submit_max_attempts == 3
        assert settings.submit_retry_delay_seconds == 2.0
        assert settings.submit_backoff_multiplier == 1.0
        assert settings.commitment == "confirmed"
        assert settings.vrf_keypair_path is None
        assert settings.program_pubkey() == Pubkey(bytes([7]) * 32)

    def test_environment_overrides_command_line(self):
        args = _args(
            "--oracle.program_id", PROGRAM_ID,
            "--oracle.oracle_keypair_path", "oracle.json",
            "--oracle.poll_interval_seconds", "5",
            "--oracle.rpc_url", "http://cli:8899",
        )
        settings = load_settings(args, environ={
            "VRF_ORACLE__POLL_INTERVAL_SECONDS": "7.5",
            "VRF_ORACLE__SUBMIT_MAX_ATTEMPTS": "5",
        })
        assert settings.poll_interval_seconds == 7.5
        assert settings.submit_max_attempts == 5
        assert settings.rpc_url == "http://cli:8899"

    def test_environment_only(self):
        settings = load_settings(None, environ={
            "VRF_ORACLE__PROGRAM_ID": PROGRAM_ID,
            "VRF_ORACLE__ORACLE_KEYPAIR_PATH": "/keys/oracle.json",
            "VRF_ORACLE__PROVER": "cli",
            "VRF_ORACLE__COMMITMENT": "finalized",
        })
        assert settings.prover == "cli"
        assert settings.commitment == "finalized"
        assert settings.oracle_keypair_path == "/keys/oracle.json"

    def test_empty_environment_value_falls_through(self):
        args = _args("--oracle.program_id", PROGRAM_ID, "--oracle.oracle_keypair_path", "k.json")
        settings = load_settings(args, environ={"VRF_ORACLE__RPC_URL": ""})
        assert settings.rpc_url == "http://127.0.0.1:8899"

    def test_missing_program_id(self):
        with pytest.raises(ConfigError):
            load_settings(_args("--oracle.oracle_keypair_path", "k.json"), environ={})

    def test_invalid_program_id(self):
        with pytest.raises(ConfigError):
            load_settings(None, environ={
                "VRF_ORACLE__PROGRAM_ID": "0" * 44,
                "VRF_ORACLE__ORACLE_KEYPAIR_PATH": "k.json",
            })

    @pytest.mark.parametrize("name, value", [
        ("VRF_ORACLE__SUBMIT_MAX_ATTEMPTS", "0"),
        ("VRF_ORACLE__POLL_INTERVAL_SECONDS", "soon"),
        ("VRF_ORACLE__SUBMIT_BACKOFF_MULTIPLIER", "0.5"),
        ("VRF_ORACLE__PROVER", "remote"),
    ])
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigError):
            load_settings(None, environ={
                "VRF_ORACLE__PROGRAM_ID": PROGRAM_ID,
                "VRF_ORACLE__ORACLE_KEYPAIR_PATH": "k.json",
                name: value,
            })


def test_cli_flags_cover_every_setting():
    parser = argparse.ArgumentParser()
    add_args(parser)
    dests = {action.dest for action in parser._actions}
    for name in OracleSettings.model_fields:
        assert f"oracle.{name}" in dests
