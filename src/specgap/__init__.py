"""
SpecGap - gap analysis between specification documents and source code.

Reads GitHub Spec Kit and BMAD specifications, checks each requirement
against a Python source tree, and reports missing, stub and partial
implementations with confidence scores.
"""

__version__ = "0.1.0"
