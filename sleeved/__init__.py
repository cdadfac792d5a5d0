"""
Sleeved - Rules engine for the Sleeved Potential card game.

A composed card is a sleeve, an animal and any number of equipment
cards. The engine provides:
- Stat layering (sleeve background, animal, equipment, sleeve foreground)
- Deterministic one-round combat resolution and scoring
- Special effect triggers
- Elo rating updates
- In-memory 1v1 matches around the engine
"""

__version__ = "0.1.0"
