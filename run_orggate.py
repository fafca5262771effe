"""Run OrgGate from a source checkout without installing it.

Uses ./config.json next to this file unless --config is given.
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent


def main_runner(argv: list[str]) -> int:
    src = ROOT / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from orggate.main import main as orggate_main

    if "--config" not in argv:
        argv = ["--config", str(ROOT / "config.json"), *argv]
    return orggate_main(argv)


if __name__ == "__main__":
    sys.exit(main_runner(sys.argv[1:]))
