"""CLI entry point: grow a lineage of music generations from a prompt and a mood."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from evolver.agent.composer_agent import DEFAULT_MODEL_NAME
from evolver.errors import EvolutionError
from evolver.models.emotion import EMOTION_DIMENSIONS, EmotionalVector
from evolver.models.session import SessionSettings
from evolver.services.randomness import make_rng
from evolver.services.session_service import (
    SessionManager,
    create_session,
    export_creative_log,
    export_session,
)

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Evolve parametric music from a text prompt and an emotional vector."
    )
    parser.add_argument(
        "prompt",
        help="Text description of the music to start from.",
    )
    for dimension in EMOTION_DIMENSIONS:
        parser.add_argument(
            f"--{dimension}",
            type=float,
            default=0.5,
            help=f"Emotional {dimension} in [0, 1] (default: 0.5).",
        )
    parser.add_argument(
        "--generations", "-n",
        type=int,
        default=5,
        help="Number of generations to evolve after the root (default: 5).",
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=0.5,
        help="Creative temperature: 0 conservative, 1 experimental (default: 0.5).",
    )
    parser.add_argument(
        "--feedback", "-f",
        type=str,
        default=None,
        help='Feedback steering the first evolution step, e.g. "more energy".',
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible runs.",
    )
    parser.add_argument(
        "--use-ai",
        action="store_true",
        help="Ask the remote composer (OpenRouter) instead of the local pipeline.",
    )
    parser.add_argument(
        "--use-mock",
        action="store_true",
        help="Use a canned composer response instead of calling the model.",
    )
    parser.add_argument(
        "--model", "-m",
        type=str,
        default=None,
        help=f"OpenRouter model ID (default: {DEFAULT_MODEL_NAME}).",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory (default: outputs/YYYY-MM-DD/HH-MM-SS).",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every engine step to stderr.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log full debug trace of composer requests and responses.",
    )
    return parser.parse_args(argv)


def setup_output_dir(custom_dir: str | None = None) -> Path:
    """Create output directory with timestamp."""
    if custom_dir:
        output_dir = Path(custom_dir)
    else:
        now = datetime.now()
        output_dir = Path("outputs") / now.strftime("%Y-%m-%d") / now.strftime("%H-%M-%S")

    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def setup_logging(output_dir: Path, verbose: bool = False, debug: bool = False) -> None:
    """Setup logging to both console and file."""
    log_level = logging.DEBUG if (verbose or debug) else logging.INFO

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    console_handler.setFormatter(formatter)

    # File handler
    file_handler = logging.FileHandler(output_dir / "execution.log")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)


def _report_progress(step: int, total: int, generation) -> None:
    fitness = generation.fitness
    log.info(
        f"[{step}/{total}] {generation.id}: {', '.join(m.value for m in generation.mutations[-1:])} "
        f"(resonance {fitness.emotional_resonance:.0%}, interest {fitness.interest:.0%})"
    )


async def run(args: argparse.Namespace) -> SessionManager:
    mood = EmotionalVector(**{d: getattr(args, d) for d in EMOTION_DIMENSIONS})
    settings = SessionSettings(
        creative_temperature=args.temperature,
        generations_to_run=max(args.generations, 1),
    )
    manager = SessionManager(
        create_session(settings=settings),
        make_rng(args.seed),
        use_ai=args.use_ai or args.use_mock,
        use_mock=args.use_mock,
        model_name=args.model,
        debug=args.debug,
    )

    root = await manager.start(args.prompt, mood)
    log.info(f"Root generation {root.id}: {root.music_params.tempo:.1f} BPM in {root.music_params.key}")

    remaining = args.generations
    if args.feedback and remaining > 0:
        child = await manager.evolve_current(args.feedback)
        _report_progress(1, args.generations, child)
        remaining -= 1
    if remaining > 0:
        await manager.run_autonomous(remaining, on_progress=_report_progress)

    return manager


async def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    output_dir = setup_output_dir(args.output_dir)
    setup_logging(output_dir, args.verbose, args.debug)

    start_time = time.time()
    start_datetime = datetime.now().isoformat()

    log.info("=" * 80)
    log.info("Starting evolution session")
    log.info("Execution Parameters:")
    log.info(f"  - Timestamp: {start_datetime}")
    log.info(f"  - Prompt: {args.prompt}")
    log.info(f"  - Mood: {', '.join(f'{d}={getattr(args, d)}' for d in EMOTION_DIMENSIONS)}")
    log.info(f"  - Generations: {args.generations}")
    log.info(f"  - Temperature: {args.temperature}")
    log.info(f"  - Feedback: {args.feedback or '<none>'}")
    log.info(f"  - Seed: {args.seed}")
    log.info(f"  - Composer: {'mock' if args.use_mock else (args.model or DEFAULT_MODEL_NAME) if args.use_ai else 'local'}")
    log.info(f"  - Output directory: {output_dir}")
    log.info("=" * 80)

    if args.generations < 0:
        log.error("Error: --generations must be zero or more")
        print("Error: --generations must be zero or more", file=sys.stderr)
        sys.exit(1)

    try:
        manager = await run(args)
    except ValidationError as e:
        log.error(f"Invalid input: {e}")
        print(f"Error: invalid input: {e}", file=sys.stderr)
        sys.exit(1)
    except EvolutionError as e:
        log.error(f"Evolution failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    elapsed_time = time.time() - start_time
    log.info("=" * 80)
    log.info(f"Execution completed successfully in {elapsed_time:.2f}s")
    log.info("=" * 80)

    session = manager.session

    session_file = output_dir / "session.json"
    session_file.write_text(export_session(session))
    log.info(f"Session saved to {session_file}")

    log_file = output_dir / "creative_log.md"
    log_file.write_text(export_creative_log(session))
    log.info(f"Creative log saved to {log_file}")

    params_file = output_dir / "params.json"
    params = {
        "timestamp": start_datetime,
        "prompt": args.prompt,
        "mood": {d: getattr(args, d) for d in EMOTION_DIMENSIONS},
        "generations": args.generations,
        "temperature": args.temperature,
        "feedback": args.feedback,
        "seed": args.seed,
        "use_ai": args.use_ai,
        "use_mock": args.use_mock,
        "model": args.model or DEFAULT_MODEL_NAME,
        "runtime_seconds": elapsed_time,
    }
    params_file.write_text(json.dumps(params, indent=2))
    log.info(f"Parameters saved to {params_file}")

    # Print the final generation's parameters to stdout as well
    current = manager.current
    if current is not None:
        print(current.music_params.model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    asyncio.run(main())
