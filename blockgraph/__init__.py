"""
BlockGraph - note-taking backend with a semantic similarity graph.
"""

__version__ = "1.0.0"
