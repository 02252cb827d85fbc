"""
TM7 Convert - Threat Modeling Tool file converter.

Reads and writes Microsoft Threat Modeling Tool (.tm7) files as an
in-memory graph of nodes, data flows and trust boundaries.
"""

__version__ = "1.0.0"
