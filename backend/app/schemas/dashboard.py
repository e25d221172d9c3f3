from typing import Dict

from pydantic import BaseModel


class DashboardStats(BaseModel):
    issued_licences: int
    pending_licences: int
    registered_vehicles: int
    active_vehicles: int
    expiring_soon: int
    drafts: int
    state_distribution: Dict[str, int]
    status_distribution: Dict[str, int]
