"""Choice sets shared by the catalogue, records and certificates."""

from django.db import models


class CpdCategory(models.TextChoices):
    ETHICS = "ethics", "Ethics"
    TECHNICAL = "technical", "Technical"
    GENERAL = "general", "General"
    FIRM_ELEMENT = "firm_element", "Firm element"
    PRACTICE_MANAGEMENT = "practice_mgmt", "Practice management"
    PROFESSIONALISM = "professionalism", "Professionalism"
    OTHER = "other", "Other"


class CpdActivityType(models.TextChoices):
    STRUCTURED = "structured", "Structured"
    UNSTRUCTURED = "unstructured", "Unstructured"
    PARTICIPATORY = "participatory", "Participatory"
    VERIFIABLE = "verifiable", "Verifiable"
    NON_VERIFIABLE = "non_verifiable", "Non-verifiable"
