from __future__ import annotations

from typing import Optional, Protocol

from .model import Clinic


class ClinicRepository(Protocol):
    def get_by_id(self, clinic_id: int) -> Optional[Clinic]:
        raise NotImplementedError

    def get_hours(self, clinic_id: int) -> Optional[dict]:
        """Raw stored operating hours (decoded JSON) or None when never saved."""

        raise NotImplementedError

    def save_hours(self, clinic_id: int, hours: dict) -> None:
        raise NotImplementedError
