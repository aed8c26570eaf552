#!/usr/bin/env python3
"""
Post Job Script.

Translate a recorded job file (job.v1 YAML) into a G-code program.

Usage:
    python -m plasma_post.scripts.post_job job.yaml
    python -m plasma_post.scripts.post_job job.yaml -o part.gcode
    python -m plasma_post.scripts.post_job job.yaml -c machine_compact.yaml -v

Rejected arcs are linearized into segments of ``--segment-mm`` length.
"""

from __future__ import annotations

import argparse
import logging
import sys

from plasma_post.configs.loader import ConfigError, load_config
from plasma_post.gcode.generator import GCodeError, PlasmaPost
from plasma_post.host.replay import DEFAULT_SEGMENT_MM, replay
from plasma_post.job_ir.schema import load_job_file
from plasma_post.utils import fs
from plasma_post.utils.logging_config import push_context, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate a recorded toolpath job into G-code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "job",
        type=str,
        help="Job file (job.v1 YAML)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path (default: shipped machine.yaml)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output G-code path (default: stdout)",
    )
    parser.add_argument(
        "--segment-mm",
        type=float,
        default=DEFAULT_SEGMENT_MM,
        help=f"Segment length for linearized arcs (default: {DEFAULT_SEGMENT_MM})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level="DEBUG" if args.verbose else "INFO",
        context={"app": "post"},
    )

    try:
        config = load_config(args.config)
        job = load_job_file(args.job)
    except (ConfigError, ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1

    if job.name:
        push_context(job=job.name)

    try:
        program = replay(PlasmaPost(config), job.to_events(), args.segment_mm)
    except (GCodeError, ValueError) as exc:
        logger.error("Translation failed: %s", exc)
        return 1

    if args.output:
        fs.atomic_write_text(args.output, program)
        logger.info("Wrote %d lines to %s", program.count("\n"), args.output)
    else:
        sys.stdout.write(program)
    return 0


if __name__ == "__main__":
    sys.exit(main())
