"""tempovote CLI — command-line interface for the tally engine.

Usage:
    python -m tempovote.cli simulate
    python -m tempovote.cli simulate --category critical --voters 20
    python -m tempovote.cli threshold --kind sigmoid --value 1.0 --midpoint 10 --minutes 12
    python -m tempovote.cli check-invariants

The config directory is taken from --config, else TEMPOVOTE_CONFIG_DIR
(a .env file in the working directory is honoured), else the bundled
config/ directory.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tempovote.crypto.signing import generate_signing_key, sign_vote
from tempovote.engine.threshold import required_fraction
from tempovote.models.threshold import (
    ExponentialThreshold,
    LinearThreshold,
    ProposalCategory,
    SigmoidThreshold,
    ThresholdModel,
)
from tempovote.models.vote import Vote
from tempovote.policy.invariants import check_policy
from tempovote.policy.resolver import POLICY_FILENAME, PolicyResolver
from tempovote.service import TallyService


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
CONFIG_ENV_VAR = "TEMPOVOTE_CONFIG_DIR"

DEMO_VOTERS = ["Alice", "Bob", "Charlie", "Dave", "Eve"]


def resolve_config_dir(explicit: Optional[Path]) -> Path:
    if explicit is not None:
        return explicit
    load_dotenv()
    from_env = os.getenv(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return DEFAULT_CONFIG


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run one proposal end to end and print the resulting chain."""
    resolver = PolicyResolver.from_config_dir(resolve_config_dir(args.config))
    service = TallyService(resolver)

    start = datetime.now(timezone.utc)
    proposal_id = args.proposal
    category = ProposalCategory(args.category)
    opened = service.open_proposal(proposal_id, category, start)
    if not opened.success:
        print(f"Failed: {'; '.join(opened.errors)}", file=sys.stderr)
        return 1

    voters = DEMO_VOTERS if args.voters is None else [f"voter-{i}" for i in range(args.voters)]
    for i, voter_id in enumerate(voters):
        vote_time = start + timedelta(seconds=i * args.spacing)
        vote = Vote(
            voter_id=voter_id,
            validator_id=f"Val{i + 1}",
            vote_time=vote_time,
            vote_weight=1.0,
            approve=i >= args.no_votes,
        )
        result = service.cast_vote(proposal_id, sign_vote(vote, generate_signing_key()), vote_time)
        if not result.success:
            print(f"Rejected: {'; '.join(result.errors)}", file=sys.stderr)

    close_at = start + timedelta(seconds=len(voters) * args.spacing)
    closed = service.close_proposal(proposal_id, close_at)
    if not closed.success:
        print(f"Failed: {'; '.join(closed.errors)}", file=sys.stderr)
        return 1

    print(json.dumps(closed.data, indent=2, default=str))
    for block in service.chain:
        print(f"Block {block.index} | {block.timestamp_utc.isoformat()} | {block.hash} | prev {block.prev_hash}")

    if service.verify_chain():
        print("Chain integrity: VALID")
        return 0
    print("Chain integrity: INVALID", file=sys.stderr)
    return 2


def _threshold_model(args: argparse.Namespace) -> ThresholdModel:
    if args.kind == "linear":
        return LinearThreshold(slope=args.value)
    if args.kind == "exponential":
        return ExponentialThreshold(growth_rate=args.value)
    return SigmoidThreshold(steepness=args.value, midpoint=args.midpoint)


def cmd_threshold(args: argparse.Namespace) -> int:
    """Print the required fraction for a model after N minutes."""
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    now = start + timedelta(minutes=args.minutes)
    value = required_fraction(start, now, _threshold_model(args), args.override)
    print(f"{value:.4f}")
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Validate the policy file against its invariants."""
    path = resolve_config_dir(args.config) / POLICY_FILENAME
    if not path.exists():
        print(f"Policy file not found: {path}", file=sys.stderr)
        return 1
    with path.open("r", encoding="utf-8") as handle:
        params = json.load(handle)
    errors = check_policy(params)
    if errors:
        for error in errors:
            print(f"FAIL: {error}", file=sys.stderr)
        return 1
    print("Policy invariants: OK")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tempovote",
        description="Time-decay weighted vote tallying with a hash-chain audit ledger",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config directory",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("simulate", help="Run a demo proposal end to end")
    p.add_argument("--proposal", default="proposal_1")
    p.add_argument(
        "--category",
        default=ProposalCategory.NORMAL.value,
        choices=[c.value for c in ProposalCategory],
    )
    p.add_argument("--voters", type=int, default=None, help="Number of generated voters")
    p.add_argument("--no-votes", type=int, default=0, help="How many of the first voters vote no")
    p.add_argument("--spacing", type=int, default=0, help="Seconds between votes")

    p = sub.add_parser("threshold", help="Evaluate a threshold model")
    p.add_argument("--kind", required=True, choices=["linear", "exponential", "sigmoid"])
    p.add_argument("--value", type=float, required=True, help="slope, growth rate, or steepness")
    p.add_argument("--midpoint", type=float, default=0.0, help="Sigmoid midpoint in minutes")
    p.add_argument("--minutes", type=int, required=True)
    p.add_argument("--override", type=float, default=None)

    sub.add_parser("check-invariants", help="Validate the policy file")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "simulate": cmd_simulate,
        "threshold": cmd_threshold,
        "check-invariants": cmd_check_invariants,
    }
    if args.command is None:
        parser.print_help()
        return 0

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
