from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.core.observability import configure_logging  # noqa: E402
from ats_engine.services.orchestrator import analyze_cv  # noqa: E402


def _split_keywords(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def main() -> None:
    parser = argparse.ArgumentParser(description="Score a parsed CV for ATS compatibility.")
    parser.add_argument("--cv", required=True, help="Path to the parsed CV JSON document")
    parser.add_argument("--role", default=None, help="Target role, e.g. 'Backend Engineer'")
    parser.add_argument("--keywords", default=None, help="Comma separated target keywords")
    parser.add_argument("--job-description", default=None, help="Path to a job description text file")
    parser.add_argument("--industry", default=None, help="Industry used for benchmarks")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip all generative services and use local analysis only.",
    )
    parser.add_argument("--out", default=None, help="Write the JSON result here instead of stdout")
    args = parser.parse_args()

    configure_logging()

    cv = json.loads(Path(args.cv).read_text(encoding="utf-8"))
    job_description = None
    if args.job_description:
        job_description = Path(args.job_description).read_text(encoding="utf-8")

    result = asyncio.run(
        analyze_cv(
            cv,
            target_role=args.role,
            target_keywords=_split_keywords(args.keywords),
            job_description=job_description,
            industry=args.industry,
            offline=args.offline,
        )
    )

    payload = result.model_dump_json(indent=2)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload, encoding="utf-8")
        print(f"Wrote {out_path} (overall={result.overall}, degraded={result.metadata.degraded})")
    else:
        print(payload)


if __name__ == "__main__":
    main()
