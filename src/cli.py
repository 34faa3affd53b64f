"""
Cost Calibration CLI

Commands:
  fit        - Fit one operation's samples and print the model
  calibrate  - Benchmark (or load) samples, fit every operation, persist the table
  show       - Show the stored cost model table
  evaluate   - Evaluate an operation's charged cost at an input size
"""

import argparse
import json
import sqlite3
import sys


def _parse_ints(raw: str):
    return [int(v) for v in raw.split(",") if v.strip()]


def cmd_fit(args):
    """Fit a cost model to comma-separated sizes and costs."""
    from costmodel import CostModelError, fit_model, quantize

    try:
        model = fit_model(_parse_ints(args.x), _parse_ints(args.y))
        quantized = quantize(model)
    except (CostModelError, ValueError) as e:
        print(f"Fit failed: {e}")
        sys.exit(1)

    print(f"const_param: {model.const_param}")
    print(f"lin_param:   {model.lin_param}")
    print(f"r_squared:   {model.r_squared}")
    print(f"quantized:   const={quantized.const_param} lin={quantized.lin_param}")


def cmd_calibrate(args):
    """Run a full calibration and store the resulting table."""
    from metering import CalibrationConfig, calibrate
    from persistence import ArtifactError, CostModelRepository, Database, save_table
    from samples import BenchmarkSampleSource, RecordedSampleSource, SampleSourceError

    config = CalibrationConfig.from_env()
    if args.sizes:
        config.sizes = sorted(_parse_ints(args.sizes))
    if args.iterations:
        config.iterations = args.iterations
    if args.workers:
        config.workers = args.workers

    try:
        if args.samples:
            source = RecordedSampleSource.from_file(args.samples)
        else:
            source = BenchmarkSampleSource(sizes=config.sizes, iterations=config.iterations)
    except (SampleSourceError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    samples, skipped = source.collect_all(args.operation or ())
    report = calibrate(
        samples,
        workers=config.workers,
        review_threshold=config.review_threshold,
    )

    output = args.output or config.table_path
    try:
        save_table(report.table, output)
        if not args.no_db:
            repo = CostModelRepository(Database(args.database or config.database_url))
            run_id = repo.save_report(report)
            print(f"Stored calibration run {run_id}")
    except (ArtifactError, sqlite3.Error, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Calibrated: {len(report.table)} operations -> {output}")
    for op in skipped:
        print(f"  skipped: {op}")
    for op in report.needs_review:
        print(f"  needs review: {op} (r_squared={report.models[op].r_squared:.4f})")
    for failure in report.failures.values():
        print(f"  FAILED: {failure.operation}: {failure.error_type}: {failure.error}")

    if report.failures:
        sys.exit(2)


def _load_table(args):
    from metering import CalibrationConfig
    from persistence import ArtifactError, CostModelRepository, Database, RepositoryError, load_table

    config = CalibrationConfig.from_env()
    if args.database:
        try:
            table = CostModelRepository(Database(args.database)).load_table()
        except (RepositoryError, sqlite3.Error, ValueError) as e:
            print(f"Error: {e}")
            sys.exit(1)
        if table is None:
            print("Error: no calibration run stored")
            sys.exit(1)
        return table

    try:
        return load_table(args.table or config.table_path)
    except ArtifactError as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_show(args):
    """Show the stored cost model table."""
    table = _load_table(args)

    if args.json:
        print(json.dumps(table.to_dict(), indent=2))
        return

    print("Cost Model Table")
    print("=" * 60)
    print(f"Calibrated at: {table.calibrated_at}")
    print(f"Fingerprint:   {table.fingerprint}")
    print("-" * 60)
    for op, model in table.entries.items():
        print(f"{op:<32} const={model.const_param:<12} lin={model.lin_param}")


def cmd_evaluate(args):
    """Evaluate an operation's charged cost."""
    from costmodel import UncalibratedOperationError

    table = _load_table(args)

    try:
        cost = table.evaluate(args.operation, args.size)
    except (UncalibratedOperationError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(cost)


def main():
    parser = argparse.ArgumentParser(
        description="Cost Calibration - host operation cost models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # fit
    fit_parser = subparsers.add_parser("fit", help="Fit one sample set")
    fit_parser.add_argument("--x", required=True, help="Comma-separated input sizes")
    fit_parser.add_argument("--y", required=True, help="Comma-separated measured costs")

    # calibrate
    calibrate_parser = subparsers.add_parser("calibrate", help="Calibrate all operations")
    calibrate_parser.add_argument("--samples", help="Recorded samples (.json or .jsonl)")
    calibrate_parser.add_argument("--operation", action="append", help="Limit to operation (repeatable)")
    calibrate_parser.add_argument("--sizes", help="Comma-separated benchmark sizes")
    calibrate_parser.add_argument("--iterations", type=int, help="Benchmark runs per size")
    calibrate_parser.add_argument("--workers", type=int, help="Fitting thread pool size")
    calibrate_parser.add_argument("--output", help="Artifact path")
    calibrate_parser.add_argument("--database", help="Database URL")
    calibrate_parser.add_argument("--no-db", action="store_true", help="Skip the database")

    # show
    show_parser = subparsers.add_parser("show", help="Show the cost model table")
    show_parser.add_argument("--table", help="Artifact path")
    show_parser.add_argument("--database", help="Load from database URL instead")
    show_parser.add_argument("--json", action="store_true", help="Print as JSON")

    # evaluate
    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate an operation's cost")
    evaluate_parser.add_argument("operation", help="Operation identifier")
    evaluate_parser.add_argument("size", type=int, help="Input size")
    evaluate_parser.add_argument("--table", help="Artifact path")
    evaluate_parser.add_argument("--database", help="Load from database URL instead")

    args = parser.parse_args()

    if args.command == "fit":
        cmd_fit(args)
    elif args.command == "calibrate":
        cmd_calibrate(args)
    elif args.command == "show":
        cmd_show(args)
    elif args.command == "evaluate":
        cmd_evaluate(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
