"""Declarative rule engine (rules as data, actions as code)."""

from .engine import RuleEngine
from .load import load_all_rules, load_builtin_rules, load_rules_file

__all__ = ["RuleEngine", "load_all_rules", "load_builtin_rules", "load_rules_file"]
