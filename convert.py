import argparse
import sys
from typing import List, Optional

from sbedit.blocks_to_text import generate_project_code
from sbedit.diagnostics import DiagnosticCollector
from sbedit.errors import SbEditError
from sbedit.project_io import read_sb3, write_sb3
from sbedit.sb3_encoder import EncodeOptions


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a Scratch .sb3 project and re-encode it or print it as scratchblocks.")
    parser.add_argument("input", help="Path to the .sb3 project file")
    parser.add_argument("-o", "--output", default="output.sb3", help="Output .sb3 path for the re-encoded project")
    parser.add_argument("--text", action="store_true", help="Print the project's scripts as scratchblocks instead of writing an .sb3")
    parser.add_argument("--no-monitors", action="store_true", help="Do not write variable and list monitors")
    return parser.parse_args(argv)


def report(collector: DiagnosticCollector, done: str) -> None:
    if collector.all_diagnostics:
        print()  # Blank line before diagnostics
        collector.print_all()
        print()  # Blank line after diagnostics
    if collector.has_errors() or collector.has_warnings():
        print(f"Conversion completed with {collector.summary()}")
    else:
        print(done)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    collector = DiagnosticCollector()
    try:
        project = read_sb3(args.input, collector)
        if args.text:
            print(generate_project_code(project), end="")
            return 0
        write_sb3(project, args.output, EncodeOptions(include_monitors=not args.no_monitors), collector)
    except SbEditError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    report(collector, f"Successfully converted {args.input} to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
