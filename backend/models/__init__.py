from backend.models.doctor import Doctor
from backend.models.patient import Patient
from backend.models.report import Report
from backend.models.template import TestTemplate

__all__ = [
    "Patient",
    "Doctor",
    "TestTemplate",
    "Report",
]
