import sys
import logging
import argparse
import math
import time

from rng_lab.infrastructure.config.loaders.yaml_loader import ConfigError, YamlConfigLoader
from rng_lab.infrastructure.config.validators.schema_validator import SchemaValidator
from rng_lab.infrastructure.logging.log_manager import DEFAULT_LOGGING_CONFIG, initialize_logging
from rng_lab.infrastructure.scheduling.virtual_scheduler import VirtualScheduler
from rng_lab.domain.events.event_dispatcher import EventDispatcher
from rng_lab.domain.events.spin_events import SpinEventType
from rng_lab.domain.history.services.stats_aggregator import StatsAggregator
from rng_lab.domain.spin.entities.spin_engine import DELAY_SPREAD_MS, MIN_DELAY_MS
from rng_lab.application.session.session_factory import SessionFactory


MAX_DELAY_MS = MIN_DELAY_MS + DELAY_SPREAD_MS


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="RNG Lab headless spin runner")

    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to session configuration file (packaged default if omitted)"
    )
    parser.add_argument("--spins", type=int, default=100, help="Number of spins to resolve")
    parser.add_argument("--seed", default=None, help="Seed text; empty string for entropy")
    parser.add_argument("--outcomes", type=int, default=None, help="Number of outcomes (2-12)")
    parser.add_argument("--bet", type=int, default=None, help="Bet amount per spin")
    parser.add_argument("--multiplier", type=int, default=None, help="Payout multiplier (1-20)")
    parser.add_argument(
        "--autoplay-interval",
        type=int,
        default=0,
        help="Drive spins with autoplay at this interval in ms (0 = spin back to back)"
    )
    parser.add_argument(
        "--storage-dir",
        default=None,
        help="Persist history as JSON files in this directory"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    return parser.parse_args(argv)


def run_spins(session, scheduler: VirtualScheduler, spins: int, autoplay_interval_ms: int = 0) -> int:
    """
    Resolve a number of spins on a virtual clock.

    Returns:
        Number of spins resolved
    """
    start = session.engine.spins_resolved
    target = start + spins

    if autoplay_interval_ms > 0:
        def stop_at_target(event):
            if session.engine.spins_resolved >= target:
                session.stop_autoplay()

        session.event_dispatcher.register(SpinEventType.SPIN_RESOLVED, stop_at_target)
        try:
            session.start_autoplay(autoplay_interval_ms)
            step = autoplay_interval_ms / 1000
            # A spin resolves within MAX_DELAY_MS of the tick that requested it
            max_steps = spins * (math.ceil(MAX_DELAY_MS / autoplay_interval_ms) + 1) + 10
            steps = 0
            while session.engine.spins_resolved < target and steps < max_steps:
                scheduler.advance(step)
                steps += 1
            session.stop_autoplay()
            scheduler.run_until_idle()
        finally:
            session.event_dispatcher.unregister(SpinEventType.SPIN_RESOLVED, stop_at_target)
    else:
        for _ in range(spins):
            session.spin()
            scheduler.run_until_idle()

    return session.engine.spins_resolved - start


def main(argv=None):
    """Main entry point for the headless runner."""
    args = parse_arguments(argv)
    start_time = time.time()

    config_loader = YamlConfigLoader(SchemaValidator())
    try:
        config = config_loader.load_session_config(args.config)
    except ConfigError as e:
        print(f"Error loading configuration: {str(e)}")
        return 1

    session_config = config.setdefault("session", {})
    if args.seed is not None:
        session_config["seed"] = args.seed
    if args.outcomes is not None:
        session_config["num_outcomes"] = args.outcomes
    if args.bet is not None:
        session_config["bet_amount"] = args.bet
    if args.multiplier is not None:
        session_config["payout_multiplier"] = args.multiplier
    if args.storage_dir:
        config["storage"] = {"backend": "file", "directory": args.storage_dir}

    log_config = dict(config.get("logging") or DEFAULT_LOGGING_CONFIG)
    if args.verbose:
        log_config["level"] = "DEBUG"
    initialize_logging(log_config)
    logger = logging.getLogger("main")

    logger.info("Starting RNG Lab runner")

    scheduler = VirtualScheduler()
    factory = SessionFactory(scheduler, EventDispatcher())

    try:
        session = factory.create_session_from_config(config)
        resolved = run_spins(session, scheduler, max(0, args.spins), args.autoplay_interval)
        session.close()
    except KeyboardInterrupt:
        logger.info("Run interrupted by user")
        return 1

    stats = session.stats()
    logger.info("=" * 60)
    logger.info("RUN COMPLETED")
    logger.info("=" * 60)
    logger.info(f"Spins resolved this run: {resolved}")
    logger.info(f"Settings: {session.config.to_dict()}, seed={session.seed!r}")
    logger.info(f"Expected win chance: 1 / {session.config.num_outcomes} ({session.win_chance * 100:.2f}%)")
    logger.info(f"History entries: {stats.total}")
    logger.info(f"Wins: {stats.wins}")
    logger.info(f"Spent: {stats.spent:,}")
    logger.info(f"Earned: {stats.earned:,}")
    logger.info(f"ROI: {StatsAggregator.format_roi(stats)}")
    logger.info(f"Virtual time elapsed: {scheduler.now():.1f}s, wall time: {time.time() - start_time:.2f}s")

    return 0


if __name__ == "__main__":
    sys.exit(main())
