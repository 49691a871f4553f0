"""Allow running the agent as: python -m signal_engine.orchestrator [--config path]."""

import argparse

from signal_engine.orchestrator.runner import main

parser = argparse.ArgumentParser(description="Signal decision agent")
parser.add_argument("--config", default=None, help="Path to config.yaml")
args = parser.parse_args()
main(config_path=args.config)
