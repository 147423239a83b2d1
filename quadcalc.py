#!/usr/bin/env python3
"""QuadCalc CLI entry point.

Usage:
    python3 quadcalc.py categories
    python3 quadcalc.py presets motors
    python3 quadcalc.py check builds/example_5inch.json
    python3 quadcalc.py calc builds/example_5inch.json
    python3 quadcalc.py build set frame frame-apex-5
"""

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that core/engines/cli imports work.
_PROJECT_ROOT = Path(__file__).resolve().parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from cli.main import main

if __name__ == "__main__":
    main()
