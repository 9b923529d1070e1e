"""
pagesmith - HTML pre-compiler

Builds static pages out of reusable fragments and components, resolving
every directive and expression at compile time.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .lib import StandardPipeline, FileSystemBackend, MemoryBackend, LOG, state_connectToLogger

__all__ = [
    "StandardPipeline",
    "FileSystemBackend",
    "MemoryBackend",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
