"""
Services package for the rules engine.

Contains the facade that composes validation and evaluation.
"""

from rules_engine.services.rules_engine import RulesEngine

__all__ = ["RulesEngine"]
