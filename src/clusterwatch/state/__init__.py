"""State layer.

Holds the last status observed for every advertisement key.
"""
