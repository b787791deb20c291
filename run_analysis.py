"""Convenience shim to classify the commits of one branch."""

from __future__ import annotations

import sys

from src.provenance.runner import main as analysis_main


if __name__ == "__main__":
    analysis_main(sys.argv[1:])
