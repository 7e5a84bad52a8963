from .form_resolution_service import REDACTED, FormResolution, FormResolutionService

__all__ = ["REDACTED", "FormResolution", "FormResolutionService"]
