from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from bothost.core.errors import ConfigError
from bothost.core.host import build_host


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Bot host: load modules, run their lifecycle, mount bots.")
    ap.add_argument("--root", default=None, help="Host root directory (default: $BOTHOST_ROOT or cwd).")
    ap.add_argument("--mount", action="append", default=[], metavar="BOT_ID", help="Mount modules for this bot (repeatable).")
    ap.add_argument("--list-skills", action="store_true", help="Print the skill catalog as JSON.")
    ap.add_argument("--ready-timeout", type=float, default=30.0, help="Seconds to wait for the modules ready phase.")
    args = ap.parse_args(argv)

    try:
        host = build_host(args.root)
    except ConfigError as e:
        print(f"bothost: {e} ({e.context.get('error', '')})", file=sys.stderr)
        return 2

    started = host.start()
    host.logger.info(f"Started modules: {', '.join(started) or '(none)'}")

    # No HTTP layer here; the CLI itself is the readiness signal.
    host.signal_ready()
    if not host.loader.join_ready_phase(timeout=args.ready_timeout):
        host.logger.warning(f"Modules ready phase still running after {args.ready_timeout}s")

    for bot_id in args.mount:
        mounted = host.loader.load_modules_for_bot(bot_id)
        host.logger.info(f'Bot "{bot_id}": mounted {len(mounted)} module(s)')

    if args.list_skills:
        skills = [s.model_dump(by_alias=True) for s in host.loader.get_all_skills()]
        print(json.dumps(skills, indent=2, ensure_ascii=False))

    for bot_id in args.mount:
        host.loader.unload_modules_for_bot(bot_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
