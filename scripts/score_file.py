#!/usr/bin/env python
import os, argparse, json
from dataclasses import replace

from interview_readiness.config import Settings
from interview_readiness.logs import configure_logging
from interview_readiness.runner import run_full_pass

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("input", help="Path to interview JSON with a top-level 'questions' list")
    ap.add_argument("--out", help="Output path (defaults to <input>_scored.json)")
    ap.add_argument("--mock", action="store_true", help="Offline mode (no API calls)")
    args = ap.parse_args()

    settings = Settings.from_env()
    if args.mock:
        settings = replace(settings, offline_mode=True)
    configure_logging(settings)

    out = args.out or (os.path.splitext(args.input)[0] + "_scored.json")
    result = run_full_pass(args.input, out, settings)
    report = result["report"]
    print(json.dumps({
        "saved": out,
        "overallScore": report["overallScore"],
        "readinessBand": report["readinessBand"],
    }, indent=2))

if __name__ == "__main__":
    main()
