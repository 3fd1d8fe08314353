"""
Timenode request scanner.

    python main.py --tracker 0x... --factory 0x... --rpc-url http://localhost:8545

See timenode/cli.py for all flags; settings can also come from .env or a
YAML file passed with --config.
"""
from timenode.cli import run

if __name__ == "__main__":
    run()
