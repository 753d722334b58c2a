"""
Client management endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from invoicekit.api.dependencies import get_cli_store, get_current_user_id, get_limits
from invoicekit.application.dto.requests import CreateClientRequest, UpdateClientRequest
from invoicekit.application.dto.responses import (
    ClientListResponse,
    ClientResponse,
    ErrorResponse,
)
from invoicekit.core.entities import Client
from invoicekit.core.exceptions import ClientNotFoundError
from invoicekit.core.services import SubscriptionLimitService
from invoicekit.infrastructure.storage.sqlite import SQLiteClientStore

router = APIRouter(prefix="/api/clients", tags=["clients"])


def _entity_to_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=client.id or 0,
        name=client.name,
        email=client.email,
        company=client.company,
        phone=client.phone,
        address=client.address,
        created_at=client.created_at,
        updated_at=client.updated_at,
    )


async def _owned_client(
    store: SQLiteClientStore, client_id: int, user_id: int
) -> Client:
    client = await store.get(client_id)
    if client is None or client.user_id != user_id:
        raise ClientNotFoundError(client_id)
    return client


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
)
async def create_client(
    request: CreateClientRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteClientStore = Depends(get_cli_store),
    limits: SubscriptionLimitService = Depends(get_limits),
) -> ClientResponse:
    """Add a client, subject to the plan's client limit."""
    await limits.require(await limits.can_add_client(user_id), user_id)
    created = await store.create(Client(user_id=user_id, **request.model_dump()))
    return _entity_to_response(created)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    limit: int = 100,
    offset: int = 0,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteClientStore = Depends(get_cli_store),
) -> ClientListResponse:
    clients = await store.list_clients(user_id, limit=limit, offset=offset)
    return ClientListResponse(
        clients=[_entity_to_response(c) for c in clients],
        total=await store.count_clients(user_id),
    )


@router.get(
    "/{client_id}",
    response_model=ClientResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_client(
    client_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteClientStore = Depends(get_cli_store),
) -> ClientResponse:
    return _entity_to_response(await _owned_client(store, client_id, user_id))


@router.put(
    "/{client_id}",
    response_model=ClientResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_client(
    client_id: int,
    request: UpdateClientRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteClientStore = Depends(get_cli_store),
) -> ClientResponse:
    client = await _owned_client(store, client_id, user_id)
    updated = client.model_copy(update=request.model_dump(exclude_unset=True))
    return _entity_to_response(await store.update(updated))


@router.delete(
    "/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_client(
    client_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteClientStore = Depends(get_cli_store),
) -> None:
    await _owned_client(store, client_id, user_id)
    if not await store.delete(client_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Client not found: {client_id}",
        )
