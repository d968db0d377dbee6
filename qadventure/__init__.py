"""
Quantum Adventure - Quantum State Puzzle Engine

A tick-driven engine for a grid puzzle game whose mechanic is a
simplified quantum-state simulation. The engine provides:
- Sparse amplitude maps over grid positions (QState)
- Player operations: select, switch, mix, measure
- Probabilistic measurement with renormalization
- Reconciliation of visual indicators with the state maps
"""

__version__ = "0.1.0"
