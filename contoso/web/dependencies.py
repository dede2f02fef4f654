"""
Dependency injection helpers

Route handlers receive the registrar and configuration through these
getters; the application lifespan fills app_state.
"""

from typing import Dict

from contoso.concurrency.edit_workflow import EditWorkflow
from contoso.web.config import AppConfig
from contoso.web.services.registrar import Registrar

# Global state filled by the application lifespan
app_state: Dict = {}


def get_registrar() -> Registrar:
    """Get the registrar from app state."""
    return app_state["registrar"]


def get_app_config() -> AppConfig:
    """Get the configuration the app was started with."""
    return app_state["config"]


def get_departments() -> EditWorkflow:
    """Get the department edit workflow from app state."""
    return app_state["registrar"].departments


def get_students() -> EditWorkflow:
    """Get the student edit workflow from app state."""
    return app_state["registrar"].students


def get_instructors() -> EditWorkflow:
    """Get the instructor edit workflow from app state."""
    return app_state["registrar"].instructors
