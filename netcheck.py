#!/usr/bin/env python3
"""
netcheck -- network quality checks and speed tests from the terminal.

Usage::

    python netcheck.py                              # one-shot snapshot
    python netcheck.py --watch                      # follow changes until Ctrl-C
    python netcheck.py --watch --count 5            # stop after 5 changes
    python netcheck.py --check video_streaming      # is the network good enough?
    python netcheck.py --mock poor_2g --check good  # check against a mock profile
    python netcheck.py --detailed                   # snapshot with a live measurement
    python netcheck.py --speedtest                  # ping / download / upload
    python netcheck.py --speedtest --backend http://host:8080 --json
    python netcheck.py --speedtest --csv log.csv    # append CSV row
    python netcheck.py --history                    # show past speed tests
    python netcheck.py --set-backend http://host:8080
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict, Optional

from nethealth.config import (
    SpeedTestConfig,
    config_path,
    load_config,
    set_config_value,
)
from nethealth.constants import (
    DEFAULT_PHASE_TIMEOUT,
    DEFAULT_PING_COUNT,
    MAX_PHASE_TIMEOUT,
    MAX_PING_COUNT,
    MIN_PHASE_TIMEOUT,
    MIN_PING_COUNT,
)
from nethealth.errors import NetHealthError
from nethealth.health import NetworkHealth
from nethealth.history import SnapshotHistory, load_history, save_result
from nethealth.manager import FullTestResult, SpeedTestManager
from nethealth.requirements import NetworkRequirement
from nethealth.snapshot import NetworkSnapshot
from nethealth.speedtester import PROFILES, LiveSpeedTester, MockSpeedTester, SpeedTester
from nethealth.transport import validate_url
from ui.dashboard import (
    console,
    print_check_result,
    print_full_result,
    print_header,
    print_history,
    print_snapshot,
    print_stream_event,
)
from ui.logging_setup import configure_logging
from ui.output import (
    create_result_json,
    format_csv_header,
    format_csv_row,
    format_text_result,
    save_json,
)


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(ping_count: int, timeout: float, count: Optional[int] = None) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    if not MIN_PING_COUNT <= ping_count <= MAX_PING_COUNT:
        raise ValueError(f"Ping count must be between {MIN_PING_COUNT} and {MAX_PING_COUNT}")
    if not MIN_PHASE_TIMEOUT <= timeout <= MAX_PHASE_TIMEOUT:
        raise ValueError(
            f"Timeout must be between {MIN_PHASE_TIMEOUT} and {MAX_PHASE_TIMEOUT} s"
        )
    if count is not None and count < 1:
        raise ValueError("--count must be >= 1")


def build_config(
    backend: Optional[str] = None,
    ping_count: Optional[int] = None,
    timeout: Optional[float] = None,
) -> SpeedTestConfig:
    """Config file values, overridden by whatever was given on the command line."""
    data: Dict[str, Any] = load_config()
    if backend is not None:
        data["base_url"] = backend
    if ping_count is not None:
        data["ping_count"] = ping_count
    if timeout is not None:
        data["phase_timeout"] = timeout
    return SpeedTestConfig.from_dict(data)


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def _emit_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


async def run_snapshot(
    health: NetworkHealth,
    *,
    tester: Optional[SpeedTester] = None,
    requirement: Optional[NetworkRequirement] = None,
    json_output: bool = False,
) -> bool:
    """Print one snapshot (measured when *tester* is given) and optional check.

    Returns ``False`` only when a requirement check was asked for and failed.
    """
    if tester is not None:
        if json_output:
            snapshot = await health.detailed_snapshot(tester)
        else:
            with console.status("[dim]Measuring speed...[/dim]"):
                snapshot = await health.detailed_snapshot(tester)
    else:
        snapshot = health.snapshot()

    check = health.check(requirement, snapshot) if requirement is not None else None

    if json_output:
        payload: Dict[str, Any] = {"snapshot": snapshot.to_dict()}
        if check is not None:
            payload["check"] = check.to_dict()
        _emit_json(payload)
    else:
        print_snapshot(snapshot)
        if check is not None:
            print_check_result(check)

    return check.passed if check is not None else True


async def run_watch(
    health: NetworkHealth,
    *,
    count: Optional[int] = None,
    json_output: bool = False,
) -> SnapshotHistory:
    """Follow connectivity changes until *count* snapshots were seen (or forever)."""
    history = SnapshotHistory()
    if not json_output:
        console.print("[dim]Watching for network changes (Ctrl-C to stop)...[/dim]\n")

    async with health.stream() as stream:
        async for snapshot in stream:
            history.append(snapshot)
            if json_output:
                print(json.dumps(snapshot.to_dict()), flush=True)
            else:
                print_stream_event(snapshot, history)
            if count is not None and len(history) >= count:
                break

    return history


async def run_speedtest(
    config: SpeedTestConfig,
    *,
    json_output: bool = False,
    simple: bool = False,
    output_file: Optional[str] = None,
    csv_file: Optional[str] = None,
    snapshot: Optional[NetworkSnapshot] = None,
) -> Dict[str, Any]:
    """Execute the full speed test and return a JSON-serialisable dict."""
    show_ui = not json_output and not simple

    async with SpeedTestManager(config) as manager:
        if show_ui:
            console.print(f"[dim]Backend:[/dim] {config.base_url}\n")
            with console.status("[bold]Starting...[/bold]") as status:
                manager.on_phase = lambda phase: status.update(
                    f"[bold]Testing {phase.value}...[/bold]"
                )
                result = await manager.perform_full_test()
            print_full_result(result)
        else:
            result = await manager.perform_full_test()
            if simple:
                print(format_text_result(result))

    result_json = create_result_json(result, snapshot=snapshot, backend=config.base_url)

    if json_output:
        _emit_json(result_json)

    if output_file:
        save_json(result_json, output_file)
        if not json_output:
            console.print(f"\n[green]Results saved to:[/green] {output_file}")

    if csv_file:
        _append_csv(csv_file, config.base_url or "", result, snapshot)
        if not json_output:
            console.print(f"[green]CSV row appended to:[/green] {csv_file}")

    save_result(result_json)
    return result_json


def _append_csv(
    path: str,
    backend: str,
    result: FullTestResult,
    snapshot: Optional[NetworkSnapshot] = None,
) -> None:
    """Append a single CSV row, writing the header if the file is new."""
    write_header = not os.path.isfile(path) or os.path.getsize(path) == 0
    with open(path, "a", encoding="utf-8") as fh:
        if write_header:
            fh.write(format_csv_header() + "\n")
        fh.write(format_csv_row(backend, result, snapshot) + "\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="netcheck -- network quality checks and speed tests",
    )
    # Modes
    parser.add_argument("--watch", "-w", action="store_true", help="Follow network changes until interrupted")
    parser.add_argument("--count", type=int, metavar="N", help="With --watch: stop after N snapshots")
    parser.add_argument("--check", "-c", type=str, metavar="REQUIREMENT", help="Check the network against a requirement or quality level")
    parser.add_argument("--mock", type=str, metavar="PROFILE", choices=sorted(PROFILES), help="Measure with a mock profile instead of the network")
    parser.add_argument("--detailed", "-d", action="store_true", help="Include a live speed measurement in the snapshot")
    parser.add_argument("--speedtest", "-t", action="store_true", help="Run ping, download and upload against the backend")

    # Backend and test parameters
    parser.add_argument("--backend", "-b", type=str, metavar="URL", help="Speed-test backend base URL")
    parser.add_argument("--ping-count", type=int, default=None, metavar="N", help=f"Number of ping samples (default: {DEFAULT_PING_COUNT})")
    parser.add_argument("--timeout", type=float, default=None, metavar="SECS", help=f"Per-phase timeout in seconds (default: {DEFAULT_PHASE_TIMEOUT:.0f})")

    # Output
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--simple", "-s", action="store_true", help="Plain text speed test output (no dashboard)")
    parser.add_argument("--output", "-o", type=str, metavar="FILE", help="Save speed test results to a JSON file")
    parser.add_argument("--csv", type=str, metavar="FILE", help="Append speed test results as a CSV row")

    # Misc
    parser.add_argument("--history", action="store_true", help="Show past speed test results and exit")
    parser.add_argument("--set-backend", type=str, metavar="URL", help="Store the default backend URL and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    # History mode
    if args.history:
        print_history(load_history())
        return

    try:
        # Persist backend
        if args.set_backend:
            validate_url(args.set_backend)
            path = set_config_value("base_url", args.set_backend)
            console.print(f"[green]Backend saved to:[/green] {path}")
            return

        config = build_config(args.backend, args.ping_count, args.timeout)
        _validate(config.ping_count, config.phase_timeout, args.count)
        requirement = NetworkRequirement.named(args.check) if args.check else None
        health = NetworkHealth()

        show_header = not args.json and not args.simple
        if show_header:
            print_header()

        if args.watch:
            asyncio.run(run_watch(health, count=args.count, json_output=args.json))
            return

        if args.speedtest:
            csv_file = args.csv or load_config().get("csv_file") or None
            asyncio.run(
                run_speedtest(
                    config,
                    json_output=args.json,
                    simple=args.simple,
                    output_file=args.output,
                    csv_file=csv_file,
                    snapshot=health.snapshot(),
                )
            )
            return

        if args.mock:
            passed = asyncio.run(
                run_snapshot(
                    health,
                    tester=MockSpeedTester.from_profile(args.mock),
                    requirement=requirement,
                    json_output=args.json,
                )
            )
        elif args.detailed:
            async def _detailed() -> bool:
                async with SpeedTestManager(config) as manager:
                    return await run_snapshot(
                        health,
                        tester=LiveSpeedTester(manager),
                        requirement=requirement,
                        json_output=args.json,
                    )
            passed = asyncio.run(_detailed())
        else:
            passed = asyncio.run(
                run_snapshot(health, requirement=requirement, json_output=args.json)
            )

        if not passed:
            sys.exit(2)

    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(1)
    except (NetHealthError, ValueError, OSError) as exc:
        console.print(f"\n[red]Error: {exc}[/red]")
        if args.verbose:
            console.print(f"[dim]Config file: {config_path()}[/dim]")
        sys.exit(1)


if __name__ == "__main__":
    main()
