"""
Command-line interface for encoding WAV files to feature packets and back.
"""

from __future__ import annotations
import argparse
import logging
import sys

from .config import BITRATE, SAMPLE_RATE_HZ, SUPPORTED_SAMPLE_RATES
from .logging_utils import setup_logging
from .orchestration import encode_file, decode_file
from .preprocessing import HighPassPreprocessor

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log_level", type=str, default=None, help="Log level (e.g. INFO, DEBUG)")

    p = argparse.ArgumentParser(description="Packet codec encoder/decoder CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    # encode
    pe = sub.add_parser("encode", parents=[common], help="Encode a WAV file into an .npz feature matrix")
    pe.add_argument("--input", type=str, required=True)
    pe.add_argument("--output", type=str, required=True)
    pe.add_argument("--model_path", type=str, required=True)
    pe.add_argument("--sample_rate_hz", type=int, default=SAMPLE_RATE_HZ, choices=SUPPORTED_SAMPLE_RATES)
    pe.add_argument("--bitrate", type=int, default=BITRATE)
    pe.add_argument("--enable_preprocessing", action="store_true")
    pe.add_argument("--highpass_hz", type=float, default=None,
                    help="High-pass cutoff; requires --enable_preprocessing")
    pe.add_argument("--enable_dtx", action="store_true")
    pe.add_argument("--progress", action="store_true")

    # decode
    pd = sub.add_parser("decode", parents=[common], help="Decode an .npz feature matrix into a WAV file")
    pd.add_argument("--input", type=str, required=True)
    pd.add_argument("--output", type=str, required=True)
    pd.add_argument("--model_path", type=str, required=True)
    pd.add_argument("--sample_rate_hz", type=int, default=SAMPLE_RATE_HZ, choices=SUPPORTED_SAMPLE_RATES)
    pd.add_argument("--bitrate", type=int, default=BITRATE)
    pd.add_argument("--packet_loss_rate", type=float, default=0.0)
    pd.add_argument("--average_burst_length", type=float, default=1.0)
    pd.add_argument("--progress", action="store_true")

    return p


def _run(args: argparse.Namespace):
    if args.cmd == "encode":
        preprocessor = None
        if args.highpass_hz is not None:
            preprocessor = HighPassPreprocessor(cutoff_hz=args.highpass_hz)
        return encode_file(
            args.input,
            args.output,
            model_path=args.model_path,
            sample_rate_hz=args.sample_rate_hz,
            bitrate=args.bitrate,
            enable_preprocessing=args.enable_preprocessing,
            preprocessor=preprocessor,
            enable_dtx=args.enable_dtx,
            progress=args.progress,
        )
    return decode_file(
        args.input,
        args.output,
        model_path=args.model_path,
        sample_rate_hz=args.sample_rate_hz,
        bitrate=args.bitrate,
        packet_loss_rate=args.packet_loss_rate,
        average_burst_length=args.average_burst_length,
        progress=args.progress,
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.cmd == "encode" and args.highpass_hz is not None and not args.enable_preprocessing:
        parser.error("--highpass_hz requires --enable_preprocessing")
    setup_logging(args.log_level)

    try:
        result = _run(args)
    except ValueError as e:
        log.error("Invalid %s arguments: %s", args.cmd, e)
        return 2

    if not result.ok:
        print(f"❌ {args.cmd} failed ({result.failure.kind.value}): {result.failure.message}", file=sys.stderr)
        return 1

    m = result.metrics
    print(f"✅ {args.cmd.capitalize()}d {args.input} → {args.output}")
    print(f"⏱  {m.elapsed_seconds:.3f} s | {m.samples_per_second:.0f} samples/s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
