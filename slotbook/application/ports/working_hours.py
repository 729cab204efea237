from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from slotbook.domain.entities.working_hours import WorkingHours


class WorkingHoursPolicyPort(ABC):
    @abstractmethod
    def hours_for(self, provider_id: str, day: date) -> WorkingHours | None:
        """Working hours of the provider on ``day``. None means the provider does not work that day."""
        raise NotImplementedError
