"""
Offer Up - Rules engine for a trading and bluffing card game

Players take turns as the buyer while everyone else sells three-card
offers. The package provides:
- A pure transition function covering the full ten-phase round
- Set trade-ins and the interactive action-card effects
- An in-process game registry with join codes
- A FastAPI service and a small command line
"""

__version__ = "0.1.0"
