"""LOCAL-only CLI to build (and optionally compare) unified reports from files."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT.parent / "src"))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build a unified report from local tool output without caching.",
    )
    parser.add_argument(
        "mobsf_path",
        type=Path,
        help="Path to the MobSF JSON report.",
    )
    parser.add_argument(
        "--sonar",
        type=Path,
        default=None,
        help="Optional path to the SonarQube issues JSON.",
    )
    parser.add_argument(
        "--hash",
        dest="content_hash",
        default=None,
        help="Content hash to stamp on the report (defaults to the file stem).",
    )
    parser.add_argument(
        "--compare",
        type=Path,
        default=None,
        help="MobSF JSON report of a newer build to diff against.",
    )
    parser.add_argument(
        "--compare-sonar",
        type=Path,
        default=None,
        help="SonarQube issues JSON of the newer build.",
    )
    parser.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Dangerous permission rule file overriding the built-in table.",
    )
    return parser.parse_args(argv)


def load_payload(path: Path) -> object:
    return json.loads(path.read_text(encoding="utf-8"))


def build_report(
    mobsf_path: Path, sonar_path: Path | None, content_hash: str, rules
):
    from mcp_appsage.domain.models import Tool
    from mcp_appsage.services.report_builder import build_unified_report

    payloads = {Tool.MOBSF: load_payload(mobsf_path)}
    if sonar_path is not None:
        payloads[Tool.SONARQUBE] = load_payload(sonar_path)
    return build_unified_report(content_hash, payloads, rules)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    from mcp_appsage.services.permission_rules import (
        DEFAULT_PERMISSION_RULES,
        PermissionRuleTable,
    )
    from mcp_appsage.services.report_comparator import compare_reports

    try:
        rules = (
            PermissionRuleTable.from_file(args.rules)
            if args.rules is not None
            else DEFAULT_PERMISSION_RULES
        )
        report = build_report(
            args.mobsf_path,
            args.sonar,
            args.content_hash or args.mobsf_path.stem,
            rules,
        )
        if args.compare is None:
            output = report.to_mapping()
            output.pop("rawReports", None)
        else:
            newer = build_report(
                args.compare, args.compare_sonar, args.compare.stem, rules
            )
            output = compare_reports(report, newer).to_mapping()
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"dry run failed: {exc}\n")
        return 1

    sys.stdout.write(json.dumps(output, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
