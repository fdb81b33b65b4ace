#!/usr/bin/env python3
"""Mini-Agent CLI.

Starts the interactive agent. Settings come from the environment or a
``.env`` file (see ``miniagent.config``).

Requires the package to be installed, e.g. ``pip install -e .`` from the
repository root, which also provides the ``mini-agent`` command.

Example Usage:
    $ python main.py
    $ python main.py --provider anthropic --verbose
"""
import sys

from miniagent.cli import main

if __name__ == "__main__":
    sys.exit(main())
