# backend/run_local.py
"""
Run the consumption simulator against DynamoDB.

    python -m backend.run_local
    python -m backend.run_local --check-distribution 1000
    python -m backend.run_local --device device-001 --device device-002
"""
import argparse
import logging
import random
import sys

from backend.config import load_settings
from backend.lib.consumption_core.generator import ConsumptionGenerator, tier_distribution
from backend.lib.dynamodb_service import DynamoDBService
from backend.simulator import ConsumptionSimulator, SimulatorConfig

logger = logging.getLogger("backend.run_local")


def parse_args(argv):
    parser = argparse.ArgumentParser(description="IoT energy consumption simulator")
    parser.add_argument("--device", action="append", default=[],
                        help="register a device id before starting (repeatable)")
    parser.add_argument("--check-distribution", type=int, metavar="N", default=0,
                        help="print the tier mix of N generated readings before starting")
    parser.add_argument("--no-create-tables", action="store_true",
                        help="skip creating missing DynamoDB tables")
    return parser.parse_args(argv)


def print_distribution(iterations: int, seed=None):
    counts = tier_distribution(ConsumptionGenerator(random.Random(seed)), iterations)
    print(f"Distribution check ({iterations} readings):")
    for tier, count in counts.items():
        print(f" - {tier}: {count} ({count / iterations:.1%})")


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.check_distribution > 0:
        print_distribution(args.check_distribution, settings.random_seed)

    store = DynamoDBService()
    if not args.no_create_tables and not store.create_tables_if_not_exist():
        logger.error("DynamoDB tables are not available")
        return 1

    for device_id in args.device:
        store.register_device(device_id)

    rng = random.Random(settings.random_seed) if settings.random_seed is not None else None
    simulator = ConsumptionSimulator(store, SimulatorConfig.from_settings(settings), rng=rng)
    simulator.start()
    try:
        simulator.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        simulator.stop(timeout=5)
    return 0


if __name__ == "__main__":
    sys.exit(main())
