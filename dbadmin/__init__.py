"""
MySQL schema administration core.

This package contains the logic behind the browser-based admin tool:
- core/      : Configuration, logging, exceptions and warning events
- database/  : Column metadata, ALTER statement generation, query channel, transport
- services/  : Schema browsing and column editing
"""
__version__ = "0.1.0"
