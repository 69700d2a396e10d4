"""
godot-export: drives Godot export presets from a CI runner.
"""

__version__ = "1.0.0"
