"""
SplitSmart - Source Package

Splits a restaurant bill from a photo of the receipt and plain-language
instructions like "Tom had the burger".

DESIGN PRINCIPLES:
1. AI translates → Engine computes
2. Snapshot in, snapshot out (no hidden global ledger)
3. Garbage from a collaborator degrades to a no-op, never a crash
4. Every step is auditable
5. Nothing is persisted
"""

__version__ = "1.0.0"
__author__ = "SplitSmart Team"
