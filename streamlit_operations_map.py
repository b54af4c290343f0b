"""Streamlit entrypoint for the operations map dashboard."""
from __future__ import annotations

from dashboard.app import main

if __name__ == "__main__":
    main()
