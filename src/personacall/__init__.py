"""
PersonaCall — turn-based video call with a scripted younger-self persona.
"""

__version__ = "0.1.0"
