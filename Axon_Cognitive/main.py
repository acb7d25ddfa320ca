# main.py - command line entry point for the Axon cognitive engine
import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from Axon_Cognitive.axon import Axon
from Axon_Cognitive.core.config import load_config
from Axon_Cognitive.core.errors import ConfigError, FatalDefinitionError
from Axon_Cognitive.utils.jsonsafe import json_sanitize
from Axon_Cognitive.utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axon",
        description="Run the Axon global-workspace engine on a single prompt",
    )
    parser.add_argument("prompt", help="Problem statement handed to the analysis agent")
    parser.add_argument("--config", default=None, help="Path to a JSON configuration file")
    parser.add_argument("--cycles", type=int, default=None, help="Number of cognitive cycles to run")
    parser.add_argument("--json", action="store_true", help="Dump the full result as JSON")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING...)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.log_level:
        overrides["logging"] = {"level": args.log_level}
    try:
        cfg = load_config(args.config, overrides)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    log_path = configure_logging(cfg["logging"].get("path"), cfg["logging"].get("level"))
    logger.info("Axon CLI started", extra={"log_path": str(log_path)})

    axon = Axon(cfg)
    if not args.json:
        axon.on("broadcast", lambda text: print(f"\n=== BROADCAST ===\n{text}\n"))

    try:
        result = axon.process_with_streaming(args.prompt, max_cycles=args.cycles)
    except FatalDefinitionError as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(json_sanitize(result.to_dict()), ensure_ascii=False, indent=2))
        return 0

    print("=== FINAL BROADCAST ===")
    print(result.final_broadcast or "(no broadcast reached the activation threshold)")
    print(
        f"\n{result.cycles_executed} cycles, {len(result.broadcasts)} broadcasts, "
        f"{len(result.thoughts)} thoughts, {result.stats.total_agents} agents "
        f"({result.stats.duration:.1f}s)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
