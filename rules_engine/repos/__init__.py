"""
Repository layer for rule definitions.

The engine consumes rules through the RuleRepository protocol; storage
backends implement get_rule_by_id.
"""
