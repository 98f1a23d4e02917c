"""
MedReport Explainer - Medical Report Explanation Service

Turns an uploaded medical report into a plain-language explanation and an
illustration of its key finding.

IMPORTANT: This is NOT a diagnosis tool. It must NEVER replace a doctor.
"""

__version__ = "1.0.0"
