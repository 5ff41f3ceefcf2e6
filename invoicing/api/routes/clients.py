"""Client routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from invoicing.api.dependencies import get_client_service
from invoicing.api.responses import success
from invoicing.models import ClientCreate, ClientUpdate
from invoicing.services.client_service import ClientService
from invoicing.utils.pagination import paginate

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("")
def list_clients(
    search: Optional[str] = None,
    country: Optional[str] = None,
    state: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ClientService = Depends(get_client_service),
):
    clients, meta = paginate(service.list_clients(search, country, state), page, limit)
    return success(clients, meta)


@router.post("", status_code=201)
def create_client(data: ClientCreate, service: ClientService = Depends(get_client_service)):
    return success(service.create_client(data))


@router.get("/{client_id}")
def get_client(client_id: str, service: ClientService = Depends(get_client_service)):
    return success(service.get_client(client_id))


@router.put("/{client_id}")
def update_client(
    client_id: str, data: ClientUpdate, service: ClientService = Depends(get_client_service)
):
    return success(service.update_client(client_id, data))


@router.delete("/{client_id}")
def delete_client(client_id: str, service: ClientService = Depends(get_client_service)):
    return success(service.delete_client(client_id))
