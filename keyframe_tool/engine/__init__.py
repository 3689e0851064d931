"""
Animation track transform engine.
"""
