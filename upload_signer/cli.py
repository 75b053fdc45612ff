"""Command-line interface for the upload signer.

Commands:
    sign   Sign one upload and print the presigned upload JSON
    serve  Run the HTTP signing endpoint
    probe  Upload through freshly signed URLs to check the bucket
"""

import argparse
import json
import sys
from typing import Optional

import httpx
from rich.console import Console

from upload_signer.config import ConfigError, load_config, load_site_origin
from upload_signer.logs import setup_logging
from upload_signer.models import CaseResult, ProbeReport
from upload_signer.probe import DEFAULT_PROBE_SIZE, ProbeRunner
from upload_signer.reporters import ConsoleReporter, JsonReporter, Reporter
from upload_signer.s3_client import build_s3_client
from upload_signer.signing import presign_upload
from upload_signer.validation import ClientInputError, validate_upload_request

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def positive_int(value: str) -> int:
    """argparse type for sizes: an integer greater than zero."""
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size: {value!r}")
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive: {value!r}")
    return parsed


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[Reporter]):
        self._reporters = reporters

    def on_case_start(self, case_id: str) -> None:
        for reporter in self._reporters:
            reporter.on_case_start(case_id)

    def on_case_complete(self, result: CaseResult) -> None:
        for reporter in self._reporters:
            reporter.on_case_complete(result)

    def on_run_complete(self, report: ProbeReport) -> None:
        for reporter in self._reporters:
            reporter.on_run_complete(report)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="r2-upload-signer",
        description="Presigned R2 upload URLs for browser audio uploads",
    )

    parser.add_argument(
        "-c", "--config",
        default="config.json",
        help="Path to configuration file, used when no R2_* env vars are set (default: config.json)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sign = subparsers.add_parser("sign", help="Sign a single upload")
    sign.add_argument("filename", help="Name of the file to upload")
    sign.add_argument("-s", "--size", required=True, help="Declared file size in bytes")
    sign.add_argument(
        "-t", "--content-type",
        default=None,
        help="Content-Type the browser will send (default: application/octet-stream)",
    )
    sign.add_argument(
        "--json",
        action="store_true",
        help="Print plain JSON without highlighting",
    )

    serve = subparsers.add_parser("serve", help="Run the signing endpoint")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8788, help="Port (default: 8788)")

    probe = subparsers.add_parser("probe", help="Probe the bucket with signed uploads")
    probe.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-case output, show only summary",
    )
    probe.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write JSON results to file",
    )
    probe.add_argument(
        "--size",
        type=positive_int,
        default=DEFAULT_PROBE_SIZE,
        help=f"Upload size in bytes for each case (default: {DEFAULT_PROBE_SIZE})",
    )

    return parser.parse_args(argv)


def create_reporters(args: argparse.Namespace) -> list[Reporter]:
    """Create probe reporters based on command-line arguments."""
    reporters: list[Reporter] = [ConsoleReporter(quiet=args.quiet)]

    if args.json_output:
        reporters.append(JsonReporter(output_path=args.json_output))

    return reporters


def run_sign(args: argparse.Namespace) -> int:
    config = load_config(args.config)

    payload = {"filename": args.filename, "size": args.size}
    if args.content_type:
        payload["contentType"] = args.content_type

    try:
        upload = validate_upload_request(payload, config.max_audio_bytes)
    except ClientInputError as e:
        print(f"Rejected: {e.message}", file=sys.stderr)
        return EXIT_FAILED

    presigned = presign_upload(config, upload)

    if args.json:
        print(json.dumps(presigned.to_dict(), indent=2))
    else:
        Console().print_json(data=presigned.to_dict())
    return EXIT_OK


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from upload_signer.app import create_app

    app = create_app(
        lambda: load_config(args.config),
        lambda: load_site_origin(args.config),
    )
    # log_config=None keeps uvicorn on the handlers set up by setup_logging
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return EXIT_OK


def run_probe(args: argparse.Namespace) -> int:
    config = load_config(args.config)

    reporters = create_reporters(args)
    if len(reporters) == 1:
        reporter = reporters[0]
    else:
        reporter = CompositeReporter(reporters)

    with httpx.Client(timeout=60.0) as http_client:
        runner = ProbeRunner(
            config,
            http_client=http_client,
            s3_client=build_s3_client(config),
            reporter=reporter,
            size=args.size,
        )
        report = runner.run()

    return EXIT_OK if report.all_passed else EXIT_FAILED


COMMANDS = {
    "sign": run_sign,
    "serve": run_serve,
    "probe": run_probe,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for rejected input or probe
        failures, 2 for configuration errors
    """
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        return COMMANDS[args.command](args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
