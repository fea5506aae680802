"""Block fixtures for the test suite.

Every block appends its name to ``RUNS`` when its ``run`` hook executes,
so tests can assert which parts of a tree ran.
"""

from pathlib import Path

BLOCKS_DIR = Path(__file__).resolve().parent

RUNS: list[str] = []
