"""
Hours Ledger - Source Package

A personal bookkeeping assistant for a freelancer who is paid in a
different currency than the one they bill in.

DESIGN PRINCIPLES:
1. Totals are computed, never stored
2. Historical exchange rates are immutable
3. Imported time entries are read-only
4. Every failure degrades to "state unchanged + user notified"
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Hours Ledger Team"
