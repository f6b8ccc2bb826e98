"""
Expense Taxonomy - Source Package

Keeps every expense's (project, category, sub-category) triple inside the
user-curated vocabulary, even when the triple was proposed by a language
model that is free to invent labels.

DESIGN PRINCIPLES:
1. AI suggests → Taxonomy decides
2. Never crash on hostile input
3. Deterministic fallback to a known-safe default
4. Indices are immutable snapshots
5. Every coercion is auditable
"""

__version__ = "1.0.0"
__author__ = "Expense Taxonomy Team"
