# The MIT License (MIT)
# Copyright © 2023 Yuma Rao
# Copyright © 2023 Opentensor Foundation

# Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated
# documentation files (the “Software”), to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in all copies or substantial portions of
# the Software.

# THE SOFTWARE IS PROVIDED “AS IS”, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO
# THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL
# THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
# DEALINGS IN THE SOFTWARE.

import argparse
import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from vrf_oracle.errors import ConfigError
from vrf_oracle.ledger.pubkey import Pubkey
from vrf_oracle.prover.cli import DEFAULT_CLI_PATH

ENV_PREFIX = "VRF_ORACLE__"


class OracleSettings(BaseModel):
    """Fixed parameters handed to the pipeline at construction."""

    rpc_url: str = "http://127.0.0.1:8899"
    program_id: str = Field(min_length=32)
    oracle_keypair_path: str = Field(min_length=1)

    prover: Literal["ecvrf", "cli"] = "ecvrf"
    prover_cli_path: str = DEFAULT_CLI_PATH
    prover_timeout_seconds: float = Field(30.0, gt=0)
    vrf_keypair_path: Optional[str] = None

    poll_interval_seconds: float = Field(3.0, gt=0)
    submit_max_attempts: int = Field(3, ge=1)
    submit_retry_delay_seconds: float = Field(2.0, ge=0)
    submit_backoff_multiplier: float = Field(1.0, ge=1.0)

    commitment: Literal["processed", "confirmed", "finalized"] = "confirmed"
    rpc_timeout_seconds: float = Field(30.0, gt=0)
    confirm_timeout_seconds: float = Field(60.0, gt=0)

    stats_log_path: Optional[str] = None

    def program_pubkey(self) -> Pubkey:
        """Parsed program identity. Raises ConfigError."""
        return Pubkey.from_string(self.program_id)


def add_args(parser: argparse.ArgumentParser) -> None:
    """
    Adds oracle arguments to the parser. Environment variables named
    VRF_ORACLE__<FIELD> take precedence over these flags.
    """
    parser.add_argument("--oracle.rpc_url", type=str, help="Ledger JSON-RPC endpoint.")
    parser.add_argument("--oracle.program_id", type=str, help="Address of the VRF coordinator program.")
    parser.add_argument(
        "--oracle.oracle_keypair_path",
        type=str,
        help="Path to the oracle signing keypair (JSON array of 64 bytes).",
    )
    parser.add_argument(
        "--oracle.prover",
        type=str,
        choices=["ecvrf", "cli"],
        help="VRF prover: in-process ECVRF or an external CLI binary.",
    )
    parser.add_argument("--oracle.prover_cli_path", type=str, help="Path to the prover CLI binary.")
    parser.add_argument("--oracle.prover_timeout_seconds", type=float, help="Timeout for each prover CLI call.")
    parser.add_argument(
        "--oracle.vrf_keypair_path",
        type=str,
        help="Where the VRF keypair is persisted. Generated on first start if missing.",
    )
    parser.add_argument("--oracle.poll_interval_seconds", type=float, help="Seconds between scan cycles.")
    parser.add_argument("--oracle.submit_max_attempts", type=int, help="Submission attempts per request per cycle.")
    parser.add_argument("--oracle.submit_retry_delay_seconds", type=float, help="Delay between submission attempts.")
    parser.add_argument(
        "--oracle.submit_backoff_multiplier",
        type=float,
        help="Multiplier applied to the retry delay after each failed attempt.",
    )
    parser.add_argument(
        "--oracle.commitment",
        type=str,
        choices=["processed", "confirmed", "finalized"],
        help="Commitment level for reads and confirmations.",
    )
    parser.add_argument("--oracle.rpc_timeout_seconds", type=float, help="HTTP timeout for RPC calls.")
    parser.add_argument("--oracle.confirm_timeout_seconds", type=float, help="How long to wait for a confirmation.")
    parser.add_argument("--oracle.stats_log_path", type=str, help="Append final statistics to this file on shutdown.")


def load_settings(
    args: Optional[argparse.Namespace] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> OracleSettings:
    """Resolve settings: environment > command line > defaults."""
    environ = os.environ if environ is None else environ
    values = {}
    for name in OracleSettings.model_fields:
        env_value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value not in (None, ""):
            values[name] = env_value
            continue
        cli_value = getattr(args, f"oracle.{name}", None) if args is not None else None
        if cli_value is not None:
            values[name] = cli_value

    try:
        settings = OracleSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"invalid oracle settings: {e}") from e
    settings.program_pubkey()
    return settings


__all__ = ["ENV_PREFIX", "OracleSettings", "add_args", "load_settings"]
