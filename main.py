"""Boot Hill GM — interpret model output from the command line.

    python main.py response.txt            print the ParsedResponse as JSON
    python main.py --markers < response.txt print the canonical marker block
    python main.py --ask "look around"      call the configured model first
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from boothill_gm.config import load_settings
from boothill_gm.errors import ConfigError
from boothill_gm.parser import format_markers, parse_response
from boothill_gm.service import GameMaster

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")


def main() -> int:
    parser = argparse.ArgumentParser(description="Interpret Boot Hill Game Master output")
    parser.add_argument("file", nargs="?", type=Path, default=None,
                        help="File holding raw model output (default: stdin)")
    parser.add_argument("--ask", metavar="INPUT", default=None,
                        help="Send INPUT to the configured model instead of reading a file")
    parser.add_argument("--markers", action="store_true",
                        help="Print the canonical marker block instead of JSON")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: LOG_LEVEL or INFO)")
    args = parser.parse_args()

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.ask is not None:
        gm = GameMaster(settings.build_llm(), settings)
        result = asyncio.run(gm.respond(args.ask))
    else:
        raw = args.file.read_text(encoding="utf-8") if args.file else sys.stdin.read()
        result = parse_response(raw[:settings.max_response_chars])

    if args.markers:
        print(result.narrative)
        print()
        print(format_markers(result))
    else:
        print(result.model_dump_json(indent=2, exclude_none=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
