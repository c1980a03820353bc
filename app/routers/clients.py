from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.dependencies.services import get_client_service
from app.schemas.client import Client, ClientCreate, ClientListResponse, ClientUpdate
from app.services import ClientService
from app.services.exceptions import ConflictError

router = APIRouter()


@router.get("", response_model=ClientListResponse)
async def list_clients(service: ClientService = Depends(get_client_service)):
    return await service.list()


@router.post("", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
    req: ClientCreate,
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.create(req)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.get("/{client_id}", response_model=Client)
async def get_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    client = await service.get(client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.put("/{client_id}", response_model=Client)
async def update_client(
    client_id: str,
    req: ClientUpdate,
    service: ClientService = Depends(get_client_service),
):
    try:
        client = await service.update(client_id, req)
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    if not await service.delete(client_id):
        raise HTTPException(status_code=404, detail="Client not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
