from backoffice.rules.loader import load_rules, load_rules_or_default
from backoffice.rules.models import Rules

__all__ = ["Rules", "load_rules", "load_rules_or_default"]
