from .burr_wizard import EVENTS, build_app, WizardSession

__all__ = ["EVENTS", "build_app", "WizardSession"]
