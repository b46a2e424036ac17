"""
Streamlit entry script.

    streamlit run frontend/streamlit_app.py
"""

import sys
from pathlib import Path

# Streamlit only puts frontend/ on sys.path; the packages live one level up.
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend.ui import main

main()
