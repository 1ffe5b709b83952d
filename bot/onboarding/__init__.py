from onboarding.wizard import OnboardingWizard, WizardState, Actor
from onboarding.documents import DocumentSlot, DocumentType, UploadedFile, AttachedDocument
from onboarding.store import HttpRequestStore, RequestStore

__all__ = [
    "OnboardingWizard", "WizardState", "Actor",
    "DocumentSlot", "DocumentType", "UploadedFile", "AttachedDocument",
    "HttpRequestStore", "RequestStore",
]
