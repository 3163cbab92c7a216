"""
Legal Intake - multi-stage LLM intake pipeline for law firms
"""

__version__ = "0.1.0"
