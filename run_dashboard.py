#!/usr/bin/env python3
"""Direct launcher for the Expense Tracker dashboard.

Runs ``streamlit run expense_tracker/dashboard.py`` with the project root
on the import path.  Extra command line arguments are passed through to
Streamlit (e.g. ``--server.port 8600``).
"""

import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
dashboard_path = project_root / "expense_tracker" / "dashboard.py"

if __name__ == "__main__":
    sys.path.insert(0, str(project_root))
    result = subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(dashboard_path),
        *sys.argv[1:],
    ], cwd=str(project_root))
    sys.exit(result.returncode)
