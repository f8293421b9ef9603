import argparse
import json
import sys
from pathlib import Path

from tickusage.config import UsageConfig, users_path_from_env
from tickusage.histogram import Histogram, InvalidArgumentError
from tickusage.store import DecodeError, iter_user_docs, validate_users
from tickusage.usage import collect_usage, format_report, report_to_dict


# -------------------------
# Report / validation
# -------------------------

def cmd_report(args: argparse.Namespace) -> None:
    cfg = UsageConfig(bar_width=args.bar_width, label_width=args.label_width)
    try:
        report = collect_usage(iter_user_docs(args.users), cfg)
    except (OSError, DecodeError) as e:
        raise SystemExit(str(e)) from e

    if args.format == "json":
        print(json.dumps(report_to_dict(report), indent=2, sort_keys=True))
        return
    print(format_report(report, cfg), end="")


def cmd_validate(args: argparse.Namespace) -> None:
    problems: list[str] = []
    for p in args.paths:
        path = Path(p)
        files = sorted(path.glob("*.jsonl")) if path.is_dir() else [path]
        for f in files:
            try:
                errs = validate_users(f)
            except OSError as e:
                errs = [str(e)]
            if errs:
                problems.extend(errs)
            else:
                print(f"OK  {f}")
    if problems:
        raise SystemExit("validation failed:\n" + "\n".join(f"  - {m}" for m in problems))


# -------------------------
# Ad-hoc histogram
# -------------------------

def _parse_values(tokens: list[str]) -> list[int]:
    out: list[int] = []
    for tok in tokens:
        try:
            out.append(int(tok))
        except ValueError as e:
            raise SystemExit(f"not an integer: {tok!r}") from e
    return out


def cmd_hist(args: argparse.Namespace) -> None:
    try:
        h = Histogram(args.min, args.max, args.buckets)
    except InvalidArgumentError as e:
        raise SystemExit(str(e)) from e

    tokens = args.values if args.values else sys.stdin.read().split()
    for v in _parse_values(tokens):
        h.add(v)
    print(h.to_text(label_width=args.label_width, bar_width=args.bar_width), end="")


# -------------------------
# HTTP
# -------------------------

def cmd_serve(args: argparse.Namespace) -> None:
    from tickusage.server import serve

    users = args.users or users_path_from_env()
    if not users:
        raise SystemExit("no users export given (use --users or set TICKUSAGE_USERS)")
    cfg = UsageConfig(bar_width=args.bar_width, label_width=args.label_width)
    serve(users, host=args.host, port=args.port, cfg=cfg)


# -------------------------
# CLI entrypoint
# -------------------------

def _non_negative_int(s: str) -> int:
    v = int(s)
    if v < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {v}")
    return v


def _add_render_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--bar-width", type=_non_negative_int, default=20, help="Bar length for the largest bucket count.")
    p.add_argument("--label-width", type=_non_negative_int, default=0, help="Label column width. 0 = fit to range.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tickusage")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # ---- report ----
    p_rep = sub.add_parser("report", help="Print usage histograms for a users export.")
    p_rep.add_argument("users", help="Path to users JSONL export.")
    p_rep.add_argument("--format", choices=["text", "json"], default="text", help="Output format.")
    _add_render_args(p_rep)
    p_rep.set_defaults(func=cmd_report)

    # ---- validate ----
    p_val = sub.add_parser("validate", help="Validate users JSONL against the document schemas.")
    p_val.add_argument("paths", nargs="+", help="JSONL files or directories containing JSONL files.")
    p_val.set_defaults(func=cmd_validate)

    # ---- hist ----
    p_h = sub.add_parser("hist", help="Histogram integers from arguments or stdin.")
    p_h.add_argument("min", type=int)
    p_h.add_argument("max", type=int)
    p_h.add_argument("buckets", type=int)
    p_h.add_argument("values", nargs="*", help="Values to add. Default: whitespace-separated stdin.")
    _add_render_args(p_h)
    p_h.set_defaults(func=cmd_hist)

    # ---- serve ----
    p_srv = sub.add_parser("serve", help="Serve the usage report over HTTP.")
    p_srv.add_argument("--users", default=None, help="Users JSONL export. Default: $TICKUSAGE_USERS")
    p_srv.add_argument("--host", default="127.0.0.1")
    p_srv.add_argument("--port", type=int, default=8080)
    _add_render_args(p_srv)
    p_srv.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
