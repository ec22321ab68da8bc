"""
Core module for configuration and the survey domain services.

Note: the domain services are not imported at package level to avoid
circular imports with cough_survey.storage (which imports exceptions and
entities from cough_survey.core). Import them directly:
from cough_survey.core.sessions import SessionAssignmentEngine
"""
from .config import settings

__all__ = ["settings"]
