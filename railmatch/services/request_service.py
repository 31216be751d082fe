"""Freight request lookups with ownership checks."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select

from railmatch.core.exceptions import NotFoundError, PermissionDeniedError
from railmatch.models import FreightRequest
from railmatch.services.base_service import BaseService


class RequestService(BaseService):
    """Service for reading seekers' freight requests."""

    def get_request(self, request_id: int) -> FreightRequest:
        request = self.db.get(FreightRequest, request_id)
        if request is None:
            raise NotFoundError(f"Request not found: {request_id}")
        return request

    def get_owned_request(self, request_id: int, company_id: int | None) -> FreightRequest:
        """Fetch a request, checking it belongs to ``company_id`` when one is given."""
        request = self.get_request(request_id)
        if company_id is not None and request.company_id != company_id:
            raise PermissionDeniedError("Request does not belong to your company")
        return request

    def list_requests(self, request_ids: Iterable[int] | None = None) -> list[FreightRequest]:
        stmt = select(FreightRequest).order_by(FreightRequest.id)
        if request_ids is not None:
            stmt = stmt.where(FreightRequest.id.in_(list(request_ids)))
        return list(self.db.execute(stmt).scalars().all())
