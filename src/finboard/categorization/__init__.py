"""Transaction categorization utilities.

Local, rule-based categorization of statement lines from their
description and type text. No network calls.
"""

from .rules import Categorizer, RuleBasedCategorizer, categorize

__all__ = ["Categorizer", "RuleBasedCategorizer", "categorize"]
