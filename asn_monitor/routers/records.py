# asn_monitor/routers/records.py
from typing import Literal
from fastapi import APIRouter, Depends, Query, Response, status
from asn_monitor.core.config import get_settings, Settings
from asn_monitor.deps import get_store
from asn_monitor.notifications import annotate_record
from asn_monitor.schemas import AsnIn, AsnListItem, AsnPatch, AsnRecord
from asn_monitor.stores.base import RecordStore

router = APIRouter()

StatusFilter = Literal["all", "due_soon", "overdue", "ok"]
SortOrder = Literal["created", "nama", "-nama"]


def _matches(item: AsnListItem, term: str) -> bool:
    return term in item.nama.lower() or term in item.nip.lower()


@router.get("/records", tags=["Records"], summary="Listar pegawai",
            response_model=list[AsnListItem])
def list_records(
    q: str | None = Query(None, description="Busca en nama o NIP"),
    status_filter: StatusFilter = Query("all", alias="status"),
    sort: SortOrder = Query("created", description="created (recientes primero), nama, -nama"),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    items = [annotate_record(r, window=settings.DUE_SOON_DAYS) for r in store.list()]
    term = (q or "").strip().lower()
    if term:
        items = [it for it in items if _matches(it, term)]
    if status_filter != "all":
        items = [it for it in items if it.status == status_filter]
    if sort != "created":
        items.sort(key=lambda it: it.nama.casefold(), reverse=sort == "-nama")
    return items


@router.post("/records", tags=["Records"], summary="Alta de pegawai",
             status_code=status.HTTP_201_CREATED, response_model=AsnRecord)
def create_record(payload: AsnIn, store: RecordStore = Depends(get_store)):
    return store.create(payload)


@router.get("/records/{record_id}", tags=["Records"], summary="Detalle de pegawai",
            response_model=AsnRecord)
def get_record(record_id: int, store: RecordStore = Depends(get_store)):
    return store.get(record_id)


@router.api_route("/records/{record_id}", methods=["PUT", "PATCH"], tags=["Records"],
                  summary="Editar pegawai (merge-patch)", response_model=AsnRecord)
def update_record(record_id: int, payload: AsnPatch, store: RecordStore = Depends(get_store)):
    return store.update(record_id, payload)


@router.delete("/records/{record_id}", tags=["Records"], summary="Borrar pegawai",
               status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_record(record_id: int, store: RecordStore = Depends(get_store)):
    store.delete(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
