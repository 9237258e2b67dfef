"""
Gallery - personal photo library with people tagging
"""
__version__ = "0.1.0"
