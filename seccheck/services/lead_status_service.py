import logging
from typing import Any

from seccheck.core.exceptions import LeadNotFoundError
from seccheck.dependencies import LeadValidator
from seccheck.repositories.lead_repository import LeadRepository
from seccheck.schemas.lead import LeadRecord

logger = logging.getLogger(__name__)


class LeadStatusService:
    """The ``new`` <-> ``done`` lifecycle of a lead."""

    def __init__(self, lead_repo: LeadRepository) -> None:
        self._lead_repo = lead_repo

    async def set_status(self, lead_id: str, status: Any) -> LeadRecord:
        """Set the status of a lead and return the updated record.

        Raises:
            InvalidStatusError: *status* is not exactly ``new`` or ``done``.
            LeadNotFoundError: no lead has this id.
            StorageError: the deployment has no status column or the
                update failed.
        """
        new_status = LeadValidator.validate_status(status)

        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")

        await LeadValidator.validate_status_transition(lead.status, new_status)
        await self._lead_repo.update_status(lead_id, new_status.value)
        logger.info("Lead %s: %s -> %s", lead_id, lead.status, new_status.value)

        updated = await self._lead_repo.get_by_id(lead_id)
        return updated or lead
