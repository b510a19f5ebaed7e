"""
Formula modules for combat-lab.

Contains:
- Hit chance, critical, mitigation and sustain formulas.
- Initiative rolls and turn ordering.
- Stacking rules for periodic effects (DoT/HoT) and buffs/shields.
"""

from . import buffs, critical, dot, hitchance, initiative, mitigation, sustain

__all__ = ["buffs", "critical", "dot", "hitchance", "initiative", "mitigation", "sustain"]
