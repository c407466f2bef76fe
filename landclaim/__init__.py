"""
Land-claim submission-integrity pipeline.

Ingests a boundary file, validates it into a single polygon, checks it
against registered prohibited zones, and atomically promotes a draft into
an auditable submission.
"""

__version__ = "0.1.0"
