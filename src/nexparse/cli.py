#!/usr/bin/env python3
"""
nexparse CLI
Command-line interface for reading a NEXUS file and reporting its contents
"""

import argparse
import logging
from pathlib import Path

from . import parse_file, write_report
from .parsers.dispatcher import NexusHost
from .utils.logging import NexusLogger


class ReportingHost(NexusHost):
    """Host that also dumps section reports requested with [&SHOWALL]"""

    def __init__(self, show_all: bool = False):
        super().__init__()
        self.show_all = show_all

    def debug_report(self, section) -> None:
        if self.show_all:
            print(section.report())
        super().debug_report(section)


def main(argv=None):
    """Parse a NEXUS file and print a report of every section read"""
    parser = argparse.ArgumentParser(
        prog="nexparse",
        description="Read a NEXUS file and report the taxa, character matrix and sets it contains.",
    )
    parser.add_argument("input", help="Input NEXUS file (.nex, .nxs)")
    parser.add_argument("-o", "--output", help="Write the report to this file instead of stdout")
    parser.add_argument(
        "--show-all",
        action="store_true",
        help="Print section reports when the file contains [&SHOWALL] commands",
    )
    parser.add_argument("--no-matrix", action="store_true", help="Leave the matrix out of the report")
    parser.add_argument("--debug", action="store_true", help="Write debug messages to the log file")

    args = parser.parse_args(argv)

    input_path = Path(args.input)

    if not input_path.exists():
        NexusLogger.error(f"Input file {input_path} does not exist")
        return 1

    NexusLogger.setup_logger(str(input_path), logging.DEBUG if args.debug else logging.INFO)

    try:
        host = ReportingHost(show_all=args.show_all)
        document = parse_file(input_path, host)

        for comment in document.comments:
            print(comment)

        report = write_report(document, show_matrix=not args.no_matrix)
        if args.output:
            output_path = Path(args.output)
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(report)
            NexusLogger.success(f"Report for {input_path.name} written to {output_path.name}")
        else:
            print(report)

        if not document.completed:
            for error in document.errors:
                print(f"Error: {error}")
            return 1
        NexusLogger.success(f"Read {input_path.name}")

    except Exception as e:
        import traceback

        NexusLogger.error(f"Error while reading {input_path.name}: {e}")
        NexusLogger.debug("Full traceback:")
        NexusLogger.debug(traceback.format_exc())
        return 1
    finally:
        log_path = NexusLogger.get_log_file_path()
        if log_path:
            print(f"\nLog file: {log_path}")
        NexusLogger.cleanup()

    return 0


if __name__ == "__main__":
    exit(main())
