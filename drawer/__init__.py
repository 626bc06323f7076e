"""
Drawer - Source Package

A personal data warehouse: uploaded documents are turned into structured
facts, notes and reminders are kept alongside them, and a conversational
assistant answers questions using only what is stored.

DESIGN PRINCIPLES:
1. Model output is untrusted input - normalize it field by field
2. Prefer a best-effort record over a hard failure
3. Every aggregate is recomputed from current state
4. The assistant only sees stored data
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Drawer Team"
