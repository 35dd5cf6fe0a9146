"""Certificate code generation and URL helpers."""

from __future__ import annotations

import re
import secrets
import string

from django.conf import settings
from django.urls import reverse
from django.utils import timezone

CODE_ALPHABET = string.ascii_lowercase + string.digits
CODE_SUFFIX_LENGTH = 8
CODE_PATTERN = re.compile(r"^CERT-\d{4}-[a-z0-9]{8}$")


def generate_certificate_code(year: int | None = None) -> str:
    """Return a fresh ``CERT-<year>-<suffix>`` code.

    The suffix is drawn from a CSPRNG; uniqueness is still enforced by the
    database and collisions are handled by the issuer.
    """

    if year is None:
        year = timezone.now().year
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"CERT-{year}-{suffix}"


def is_well_formed_code(code: str) -> bool:
    return bool(CODE_PATTERN.match(code or ""))


def build_verification_url(code: str) -> str:
    """Return the public verification URL for ``code``."""

    path = reverse("api:certificate-verify", kwargs={"code": code})
    base_url = getattr(settings, "CERTIFICATE_VERIFY_BASE_URL", "")
    if base_url:
        return f"{base_url.rstrip('/')}{path}"
    return path
