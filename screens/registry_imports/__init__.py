# screens/registry_imports/__init__.py
"""
Registry import screens: subjects, combinations, calendar, activities,
FAQs and the leadership roster, all fed through the import wizard.
"""
from screens.registry_imports.targets import TARGETS, ImportTarget, RegistryCommit

__all__ = ["TARGETS", "ImportTarget", "RegistryCommit"]
