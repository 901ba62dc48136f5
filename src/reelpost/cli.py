"""Command line entry point."""

import argparse
import json
import logging
import signal
import sys
import threading

from reelpost.models.errors import ReelpostError
from reelpost.models.pipeline import TickStatus
from reelpost.runtime import Runtime, build_runtime


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_setup(runtime: Runtime, args: argparse.Namespace) -> int:
    inserted = runtime.config.seed_defaults()
    print(f"Database ready at {runtime.settings.database_url} ({inserted} default(s) seeded)")
    return 0


def cmd_ingest(runtime: Runtime, args: argparse.Namespace) -> int:
    for path in args.paths:
        clip = runtime.store.ingest_clip(path)
        print(f"{clip.id}  {clip.file_path}  ({clip.size_bytes} bytes)")
        if args.create_job:
            job = runtime.store.create_job(clip_id=clip.id)
            print(f"  -> job {job.id}")
    return 0


def cmd_run(runtime: Runtime, args: argparse.Namespace) -> int:
    if args.job:
        result = runtime.executor.run_job(args.job)
        _print_json(result.model_dump(mode="json"))
        return 0 if result.success else 1
    tick = runtime.scheduler.tick()
    _print_json(tick.model_dump(mode="json"))
    if tick.status == TickStatus.ERROR:
        return 1
    return 0 if tick.run is None or tick.run.success else 1


def cmd_retry(runtime: Runtime, args: argparse.Namespace) -> int:
    result = runtime.executor.retry_job(args.job)
    _print_json(result.model_dump(mode="json"))
    return 0 if result.success else 1


def cmd_status(runtime: Runtime, args: argparse.Namespace) -> int:
    summary = runtime.executor.status_summary()
    if args.json:
        _print_json(summary.model_dump(mode="json"))
        return 0
    print(f"Publish mode:   {summary.publish_mode}")
    print(f"Posts today:    {summary.posted_today}/{summary.max_posts_per_day}")
    print(f"Clips ready:    {summary.clips_available}")
    print(f"Kill switch:    {'ACTIVE' if summary.kill_switch_active else 'off'}")
    for state, count in summary.jobs_by_state.items():
        if count:
            print(f"  {state:<11} {count}")
    return 0


def cmd_jobs(runtime: Runtime, args: argparse.Namespace) -> int:
    if args.job:
        job = runtime.store.require_job(args.job)
        _print_json(
            {
                "job": job.model_dump(mode="json"),
                "runs": [r.model_dump(mode="json") for r in runtime.store.get_job_runs(job.id)],
            }
        )
        return 0
    for job in runtime.store.list_jobs(state=args.state, limit=args.limit):
        error = f"  {job.error_message}" if job.error_message else ""
        print(f"{job.id}  {job.state.value:<11} {job.created_at:%Y-%m-%d %H:%M}{error}")
    return 0


def cmd_clips(runtime: Runtime, args: argparse.Namespace) -> int:
    for clip in runtime.store.list_clips(status=args.status, limit=args.limit):
        print(f"{clip.id}  {clip.status.value:<9} {clip.file_path}")
    return 0


def cmd_config(runtime: Runtime, args: argparse.Namespace) -> int:
    if args.key is None:
        for key, value in sorted(runtime.config.get_all().items()):
            print(f"{key} = {value}")
        return 0
    runtime.config.check_key(args.key)
    if args.value is not None:
        runtime.config.set(args.key, args.value)
    print(f"{args.key} = {runtime.config.get(args.key) or ''}")
    env_var = runtime.config.env_var_for(args.key)
    if env_var:
        print(f"  (overridable with {env_var})")
    return 0


def cmd_providers(runtime: Runtime, args: argparse.Namespace) -> int:
    for kind, names in sorted(runtime.registry.list_all_providers().items()):
        active = runtime.registry.active_name(kind)
        listing = ", ".join(f"*{n}" if n == active else n for n in names)
        print(f"{kind:<10} {listing}")
    return 0


def cmd_schedule(runtime: Runtime, args: argparse.Namespace) -> int:
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    return 0 if runtime.scheduler.run_forever(stop) else 1


def cmd_serve(runtime: Runtime, args: argparse.Namespace) -> int:
    import uvicorn

    from reelpost.api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reelpost", description="Short-video publishing pipeline")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="Create the database and seed config defaults")

    p = sub.add_parser("ingest", help="Register media files as clips")
    p.add_argument("paths", nargs="+")
    p.add_argument("--create-job", action="store_true", help="Create a pending job per clip")

    p = sub.add_parser("run", help="Run a job, or one scheduler tick")
    p.add_argument("--job", help="Job id (default: next pending job or next clip)")

    p = sub.add_parser("retry", help="Resume a failed job")
    p.add_argument("job")

    p = sub.add_parser("status", help="Pipeline overview")
    p.add_argument("--json", action="store_true")

    p = sub.add_parser("jobs", help="List jobs or show one with its history")
    p.add_argument("job", nargs="?")
    p.add_argument("--state")
    p.add_argument("--limit", type=int, default=50)

    p = sub.add_parser("clips", help="List clips")
    p.add_argument("--status")
    p.add_argument("--limit", type=int, default=50)

    p = sub.add_parser("config", help="Show or set configuration")
    p.add_argument("key", nargs="?")
    p.add_argument("value", nargs="?")

    sub.add_parser("providers", help="List registered providers")
    sub.add_parser("schedule", help="Run the cron scheduler in the foreground")

    p = sub.add_parser("serve", help="Serve the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    return parser


COMMANDS = {
    "setup": cmd_setup,
    "ingest": cmd_ingest,
    "run": cmd_run,
    "retry": cmd_retry,
    "status": cmd_status,
    "jobs": cmd_jobs,
    "clips": cmd_clips,
    "config": cmd_config,
    "providers": cmd_providers,
    "schedule": cmd_schedule,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    runtime = build_runtime()
    try:
        return COMMANDS[args.command](runtime, args)
    except ReelpostError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2
    finally:
        runtime.close()


if __name__ == "__main__":
    sys.exit(main())
