#!/usr/bin/env python3
"""
GenForge CLI - Main Entry Point

Usage:
    genforge "build an online store for sneakers"   # Full 5-phase generation
    genforge --mode blueprint "saas for invoices"    # Blueprint only
    genforge --mock "landing page for a bakery"      # Offline canned model
    genforge --help                                  # Show help
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from cli.renderer import GenerationRenderer
from genforge import __version__
from genforge.core.config import Settings
from genforge.core.context import create_context
from genforge.core.exceptions import GenForgeError
from genforge.core.logging_config import logger


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="genforge",
        description="GenForge - turn a one-line request into a generated web app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  genforge "an online store for handmade candles"
  genforge --mode blueprint "a SaaS for team invoicing"
  genforge --mock -o ./out "a landing page for a bakery"
  genforge --json "an analytics dashboard for sales" > result.json

Modes:
  full        architecture → design → development → review → testing
  blueprint   classify the request and produce the domain blueprint only

Environment:
  ANTHROPIC_API_KEY     Required unless --mock or USE_MOCK_MODEL=true
  MODEL_NAME            Model used for every call
  QUALITY_THRESHOLD     Minimum blueprint quality (0-10, default 7)
        """
    )

    parser.add_argument(
        "prompt",
        nargs="?",
        help="Description of the app to generate"
    )

    parser.add_argument(
        "-p", "--prompt",
        dest="prompt_flag",
        help="Description of the app to generate"
    )

    parser.add_argument(
        "--mode",
        choices=["full", "blueprint"],
        default=None,
        help="Job mode (default: DEFAULT_JOB_MODE setting)"
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use the offline model instead of the Anthropic API"
    )

    parser.add_argument(
        "-o", "--output-dir",
        type=str,
        help="Write generated files under this directory"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the final result as JSON instead of tables"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def write_files(files: Dict[str, str], output_dir: str) -> int:
    """Write generated files below output_dir; returns the number written"""
    root = Path(output_dir).resolve()
    written = 0
    for relative_path, content in files.items():
        target = (root / relative_path).resolve()
        if root not in target.parents:
            logger.warning(f"[CLI] Skipping path outside output dir: {relative_path}")
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        written += 1
    return written


async def run_job(
    settings: Settings,
    prompt: str,
    mode: Optional[str],
    renderer: Optional[GenerationRenderer]
) -> Dict[str, Any]:
    """Submit one job, stream its events to the renderer and return the result payload"""
    context = create_context(settings)
    context.start()

    try:
        metadata = {"mode": mode} if mode else None
        job_id = context.queue.add_job(prompt, metadata)
        if renderer is not None:
            context.broadcaster.subscribe(renderer.on_event, job_id=job_id)

        await context.queue.join()
        await context.broadcaster.flush()

        payload = context.queue.result(job_id)
        payload["id"] = job_id
        payload["steps"] = context.queue.get_job(job_id).to_dict()["steps"]
        return payload
    finally:
        await context.stop()


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()

    console = Console(stderr=args.json)
    prompt = args.prompt or args.prompt_flag
    if not prompt:
        parser.print_help()
        sys.exit(2)

    if args.verbose:
        logger.setLevel(logging.DEBUG)

    overrides: Dict[str, Any] = {}
    if args.mock:
        overrides["USE_MOCK_MODEL"] = True
    settings = Settings(**overrides)

    if not settings.USE_MOCK_MODEL and not settings.ANTHROPIC_API_KEY:
        console.print("[red]✗ ANTHROPIC_API_KEY is not set[/red]")
        console.print("Set it in the environment or .env, or run with [cyan]--mock[/cyan].")
        sys.exit(1)

    try:
        if args.json:
            payload = asyncio.run(run_job(settings, prompt, args.mode, None))
        else:
            with GenerationRenderer(console, verbose=args.verbose) as renderer:
                payload = asyncio.run(run_job(settings, prompt, args.mode, renderer))
    except KeyboardInterrupt:
        console.print("\n\nCancelled.")
        sys.exit(130)
    except GenForgeError as e:
        console.print(f"\n❌ {e.code}: {e.message}")
        sys.exit(1)
    except Exception as e:
        if args.verbose:
            console.print_exception()
        else:
            console.print(f"\n❌ Error: {e}")
        sys.exit(1)

    success = payload.get("success", False)
    result = payload.get("result") or {}

    if args.json:
        print(json.dumps(payload, indent=2, default=str))
    else:
        renderer.render_steps(payload.get("steps", []))
        if success:
            renderer.render_result(payload)
        else:
            renderer.render_error("Generation failed", payload.get("error"))

    if success and args.output_dir and result.get("files"):
        written = write_files(result["files"], args.output_dir)
        console.print(f"[green]✓[/green] Wrote {written} files to {args.output_dir}")

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
