import os
import sys

import matplotlib

matplotlib.use("Agg")

# Flat layout: make the top-level modules importable from tests/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
