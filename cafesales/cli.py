import argparse
import logging
import os
import sys

from cafesales.etl.config import Config
from cafesales.etl.pipeline import CleaningPipeline


def setup_logging(log_file: str, level: str) -> None:
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s'
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="cafe-clean", description="Clean a raw cafe sales table.")
    parser.add_argument("input", help="raw table (.csv or .xlsx)")
    parser.add_argument("--output", help="export path (default: OUTPUT_FOLDER/<input>_clean.<format>)")
    parser.add_argument("--format", choices=sorted(Config.EXPORT_FORMATS), default="csv")
    parser.add_argument("--seed", type=int, default=Config.RANDOM_SEED,
                        help="seed for the Cake/Juice tie-break")
    parser.add_argument("--log-file", default=Config.LOG_FILE)
    parser.add_argument("--log-level", default=Config.LOG_LEVEL)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.log_level)
    logging.info(f"Cleaning run starting: {args.input}")

    file_type = os.path.splitext(args.input)[1].lstrip('.') or 'csv'
    output_path = args.output
    if not output_path:
        base = os.path.splitext(os.path.basename(args.input))[0]
        output_path = os.path.join(Config.OUTPUT_FOLDER, f"{base}_clean.{args.format}")

    pipeline = CleaningPipeline(seed=args.seed)
    result = None
    for progress, message, payload in pipeline.process(args.input, file_type, args.format):
        logging.info(f"[{progress:>3}%] {message}")
        if payload:
            result = payload

    if not result or not result.get("success"):
        error = result.get("error") if result else "no result"
        print(f"Cleaning failed: {error}", file=sys.stderr)
        return 1

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(result["output_buffer"].getvalue())

    summary = result["audit"]["dq_report"]["summary"]
    print(f"Wrote {summary['output_rows']} records to {output_path} "
          f"(dropped {summary['dropped_rows']}, remaining nulls {summary['remaining_nulls']})")
    if summary["has_duplicates"]:
        print(f"Duplicate transaction IDs: {result['audit']['dq_report']['duplicates']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
