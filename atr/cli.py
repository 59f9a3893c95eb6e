"""Console entrypoint for the ``atr`` command."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from Algo_Trace.config import Config
from Algo_Trace.lesson import build_process, build_runtime, load_lesson
from Algo_Trace.process import BFSProcess, ProcessTimelineBinder
from Algo_Trace.utils import to_jsonable
from invariants import checks


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _emit(data: object, out: Optional[str]) -> None:
    text = json.dumps(to_jsonable(data), indent=2)
    if out:
        Path(out).write_text(text + "\n")
    else:
        print(text)


def main(argv: Optional[List[str]] = None) -> int:
    """Parse ``atr`` CLI arguments and dispatch the sub-command."""

    parser = argparse.ArgumentParser(prog="atr")
    parser.add_argument("--config", help="JSON or YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run a lesson's process to completion")
    run_p.add_argument("lesson", help="Lesson file (JSON or YAML)")
    run_p.add_argument("--max-steps", type=int, help="Step cap for the run")
    run_p.add_argument("--out", help="Write the result here instead of stdout")

    bind_p = sub.add_parser("bind", help="Bind a lesson's process to its timeline")
    bind_p.add_argument("lesson", help="Lesson file (JSON or YAML)")
    bind_p.add_argument("--out", help="Write the tracks here instead of stdout")

    check_p = sub.add_parser("check", help="Check trace invariants of a BFS lesson")
    check_p.add_argument("lesson", help="Lesson file (JSON or YAML)")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    if args.config:
        Config.load_from_file(args.config)

    lesson = load_lesson(args.lesson)
    process = build_process(lesson)

    if args.command == "run":
        _emit(process.run(args.max_steps), args.out)
        return 0

    if args.command == "bind":
        runtime = build_runtime(lesson)
        result = ProcessTimelineBinder.bind(runtime, process)
        tracks = {
            track_id: {
                "kind": track.kind,
                "process_id": track.process_id,
                "keyframes": track.get_keyframes(),
            }
            for track_id, track in runtime.get_tracks().items()
        }
        _emit({"binding": result, "duration": runtime.duration, "tracks": tracks}, args.out)
        return 0

    if not isinstance(process, BFSProcess):
        print(f"check supports bfs lessons only, got {process.type}", file=sys.stderr)
        return 2
    config = process.config
    if config is None:
        print(f"process failed: {process.failed_reason}", file=sys.stderr)
        return 1
    total_steps = process.total_steps
    run = process.run()
    flags = checks.from_run(config.adjacency, config.start_node_id, run, total_steps)
    _emit(flags, None)
    return 0 if all(flags.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
