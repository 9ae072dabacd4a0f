"""Diagnostics entrypoint: ``python -m driverconf``."""

from __future__ import annotations

import argparse
from collections.abc import Mapping
from datetime import timedelta
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from driverconf.errors import DriverConfigError
from driverconf.loader import DriverConfigLoader
from driverconf.profile import DEFAULT_PROFILE
from driverconf.settings import LoaderSettings, check_environment

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import TextIO


def render(value: Any) -> str:
    """Format a stored value for display; JSON where the value allows it."""
    return json.dumps(_plain(value))


def _plain(value: Any) -> Any:
    if isinstance(value, timedelta):
        ms, rem = divmod(value, timedelta(milliseconds=1))
        return f"{ms}ms" if not rem else f"{value.total_seconds()}s"
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    return value


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("driverconf")
    parser.add_argument("--file", help="TOML file to read (overrides DRIVERCONF_CONFIG_FILE)")
    parser.add_argument("--table", help="dotted TOML table holding the options")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)
    show = sub.add_parser("show", help="print the effective entries of a profile")
    show.add_argument("--profile", default=DEFAULT_PROFILE)
    sub.add_parser("profiles", help="list declared profile names")
    sub.add_parser("check", help="resolve once and report problems")
    sub.add_parser("env", help="print DRIVERCONF_* environment variables")
    return parser


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None) -> int:
    args = _parser().parse_args(argv)
    out = sys.stdout if out is None else out
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.cmd == "env":
        for k, v in check_environment().items():
            out.write(f"{k}={v}\n")
        return 0

    try:
        settings = LoaderSettings.from_env(config_file=args.file, table=args.table)
        config = DriverConfigLoader.from_settings(settings).initial_config()
        if args.cmd == "show":
            for path, value in config.profile(args.profile).entry_set():
                out.write(f"{path} = {render(value)}\n")
        elif args.cmd == "profiles":
            for name in sorted(config.profile_names):
                out.write(name + "\n")
        else:
            out.write(
                f"OK: generation {config.generation}, "
                f"{len(config.profile_names)} profile(s)\n"
            )
    except DriverConfigError as e:
        out.write(f"Error: {e}\n")
        if e.hint:
            out.write(f"Hint: {e.hint}\n")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
