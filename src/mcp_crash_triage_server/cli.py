from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from mcp_crash_triage_server.core.crash_service import analyze_crash_log
from mcp_crash_triage_server.core.releases import ReleaseCatalog


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Analyze a JVM fatal error log (hs_err_pid*.log).")
    p.add_argument("log_path")
    p.add_argument("--output", "-o", default=None, help="Write the report to this file instead of stdout")
    p.add_argument("--releases", default=None, help="Release catalog JSON file (default: bundled catalog)")
    p.add_argument(
        "--no-unidentified",
        dest="show_unidentified",
        action="store_false",
        help="Omit unidentified log lines from the report",
    )
    p.add_argument("--encoding", default="utf-8", help="Log file encoding (default: utf-8)")

    args = p.parse_args(argv)

    try:
        catalog = ReleaseCatalog.from_file(Path(args.releases).expanduser()) if args.releases else None
        result = asyncio.run(
            analyze_crash_log(
                args.log_path,
                catalog=catalog,
                show_unidentified=args.show_unidentified,
                encoding=args.encoding,
            )
        )
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    if args.output:
        Path(args.output).write_text(result.report, encoding="utf-8")
        print(f"Report written to {args.output} ({len(result.findings)} finding(s)).")
    else:
        sys.stdout.write(result.report)


if __name__ == "__main__":
    main()
