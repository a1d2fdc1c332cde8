from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.enums import AuthProvider


def split_full_name(name: Optional[str]) -> Tuple[str, str]:
    """Split on the first space: ``"Mary Ann Lee"`` -> ``("Mary", "Ann Lee")``."""
    parts = (name or "").strip().split(" ", 1)
    first = parts[0] if parts else ""
    last = parts[1].strip() if len(parts) > 1 else ""
    return first, last


@dataclass(frozen=True)
class NormalizedClaims:
    """Provider-agnostic identity produced by an adapter after a successful login."""

    provider: AuthProvider
    subject: str
    email: Optional[str]
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    profile_image_url: Optional[str] = None

    @classmethod
    def build(
        cls,
        *,
        provider: AuthProvider,
        subject: str,
        email: Optional[str],
        name: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> "NormalizedClaims":
        split_first, split_last = split_full_name(name)
        first = (first_name or split_first or "").strip()
        last = (last_name or split_last or "").strip()
        full = (name or f"{first} {last}").strip()
        return cls(
            provider=provider,
            subject=str(subject),
            email=(email or "").strip() or None,
            name=full,
            first_name=first,
            last_name=last,
            profile_image_url=profile_image_url,
        )

    @property
    def user_id(self) -> str:
        return f"{self.provider.value}_{self.subject}"
