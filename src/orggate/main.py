import argparse
import logging
import sys
from typing import Sequence

from .config import GateConfig, load_config
from .decision import DecisionEngine
from .errors import ConfigError, ConfigNotFound
from .gate import GateServer


def build_engine(config: GateConfig) -> DecisionEngine:
    return DecisionEngine(
        blocked_organizations=config.blocked_organizations,
        lookup_timeout=config.lookup_timeout,
    )


def run_serve(config: GateConfig) -> int:
    if not config.blocked_organizations:
        logging.warning("No blocked organizations configured; every peer is allowed.")

    engine = build_engine(config)
    try:
        server = GateServer(engine, config)
    except OSError as e:
        # bind failure, or TLS certificate/key that can't be loaded
        logging.error("Could not start server: %s", e)
        return 1

    try:
        server.serve()
    except KeyboardInterrupt:
        logging.info(
            "Shutting down (%d organization records cached).", len(engine.cache)
        )
        server.shutdown()
    return 0


def run_check(config: GateConfig, ips: Sequence[str]) -> int:
    engine = build_engine(config)
    for ip in ips:
        verdict = engine.decide(ip)
        state = "blocked" if verdict.blocked else "allowed"
        print(f"{ip:<40}  {state:<7}  {verdict.organization or '-'}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orggate",
        description="OrgGate - block connections by registered organization.",
    )
    parser.add_argument(
        "--config", default="config.json", help="Path to the JSON config file"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    # same options after the subcommand; SUPPRESS keeps the top-level values
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", default=argparse.SUPPRESS, help="Path to the JSON config file"
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=False)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Accept connections and answer them by organization (default).",
        parents=[common],
    )
    serve_parser.set_defaults(func=lambda args, cfg: run_serve(cfg))

    check_parser = subparsers.add_parser(
        "check",
        help="Print the verdict for one or more IP addresses.",
        parents=[common],
    )
    check_parser.add_argument("ips", nargs="+", metavar="IP")
    check_parser.add_argument(
        "--block",
        action="append",
        metavar="PATTERN",
        help="Blocked organization substring (repeatable, overrides config)",
    )
    check_parser.set_defaults(func=lambda args, cfg: run_check(cfg, args.ips))

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    block = getattr(args, "block", None)
    try:
        config = load_config(args.config)
    except ConfigNotFound as e:
        # check can run without a config file when patterns are given
        if block is None:
            logging.error("%s", e)
            return 1
        config = GateConfig()
    except ConfigError as e:
        logging.error("%s", e)
        return 1
    if block is not None:
        config = config.with_blocked(tuple(block))

    func = getattr(args, "func", None)
    if func is None:
        # default to "serve" if no subcommand
        return run_serve(config)
    return func(args, config)


if __name__ == "__main__":
    sys.exit(main())
