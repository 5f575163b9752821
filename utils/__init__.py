"""
Utils package for the Model Manager client
"""

from .formatting import format_size, format_modified

__all__ = ['format_size', 'format_modified']
