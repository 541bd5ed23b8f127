"""AI decision policy."""

from bjstats.strategy.basic import Action, AIPolicy, Capabilities

__all__ = [
    "AIPolicy",
    "Action",
    "Capabilities",
]
