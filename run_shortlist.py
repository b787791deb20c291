"""Convenience shim to build the organization repository shortlist."""

from __future__ import annotations

import sys

from src.ranking.runner import main as shortlist_main


if __name__ == "__main__":
    shortlist_main(sys.argv[1:])
