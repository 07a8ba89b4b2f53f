from fastapi import APIRouter, UploadFile, File, Depends, Body, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from pathlib import Path
from datetime import datetime, timezone
from typing import Any
import pandas as pd
import logging, uuid, io
from asn_monitor.core.config import get_settings, Settings
from asn_monitor.core.errors import ValidationError
from asn_monitor.core.security import validate_api_key
from asn_monitor.deps import get_store
from asn_monitor.schemas import AsnImportRow, ImportResult
from asn_monitor.stores.base import RecordStore

router = APIRouter(dependencies=[Depends(validate_api_key)])
MAX_ROWS = 10000
logger = logging.getLogger("ingestion")
logger.setLevel(logging.INFO)

# -------- utilidades --------
READ_CSV_KW = dict(
    dtype=str,
    keep_default_na=False,
    na_values=["", " ", "NA", "NaN", "nan", "NULL", "Null", "None", "none"],
)
REQUIRED_COLUMNS = ["nama", "nip"]

def _read_csv_upload(file: UploadFile, offset: int = 0, limit: int | None = None):
    raw = file.file.read()
    try:
        df_full = pd.read_csv(io.BytesIO(raw), **READ_CSV_KW)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValidationError(f"El CSV no se pudo leer: {e}") from e
    total = len(df_full)
    df = df_full.iloc[offset: offset + limit if limit is not None else None]
    return df, total

def _validate_len(n: int):
    if n == 0:
        raise ValidationError("El archivo no tiene filas")
    if n > MAX_ROWS:
        raise ValidationError(f"La petición debe tener entre 1 y {MAX_ROWS} filas")

def _df_rows(df: pd.DataFrame) -> list[dict]:
    """Filas del DataFrame como dicts; NaN -> None."""
    return [
        {k: (None if pd.isna(v) else v) for k, v in row.items()}
        for _, row in df.iterrows()
    ]

def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def _start_batch(prefix: str, settings: Settings) -> tuple[str, Path]:
    """Crea un batch_id y directorio de errores para esta corrida."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    batch_id = f"{ts}_{uuid.uuid4().hex[:8]}"
    err_dir = settings.data_path / "errors" / prefix
    _ensure_dir(err_dir)
    return batch_id, err_dir

def _write_rejected_csv(err_dir: Path, batch_id: str, rows: list[dict]) -> Path | None:
    if not rows:
        return None
    df_err = pd.DataFrame(rows)
    out = err_dir / f"rejected_{batch_id}.csv"
    df_err.to_csv(out, index=False, encoding="utf-8")
    return out

# -------- registros ASN --------
def _ingest_records(rows: list[dict], store: RecordStore, settings: Settings, offset: int = 0) -> ImportResult:
    batch_id, err_dir = _start_batch("records", settings)

    created = updated = 0
    rejected_rows: list[dict] = []

    for idx, raw in enumerate(rows, start=offset):
        src = raw if isinstance(raw, dict) else {}

        def reject(reason: str):
            rejected_rows.append({
                "reason": reason,
                "row_index": idx,
                "id": src.get("id"),
                "nama": src.get("nama"),
                "nip": src.get("nip"),
            })
            logger.info("reject_row", extra={
                "table": "asns", "batch_id": batch_id, "reason": reason, "row_index": idx
            })

        if not isinstance(raw, dict):
            reject("not_an_object")
            continue
        try:
            row = AsnImportRow.model_validate(raw)
        except PydanticValidationError:
            reject("invalid_fields")
            continue
        try:
            _, was_created = store.put(row)
        except ValidationError:
            reject("invalid_record")
            continue
        if was_created:
            created += 1
        else:
            updated += 1

    rejected_file = _write_rejected_csv(err_dir, batch_id, rejected_rows)
    logger.info("import_done batch_id=%s created=%d updated=%d rejected=%d",
                batch_id, created, updated, len(rejected_rows))
    return ImportResult(
        rows=len(rows),
        created=created,
        updated=updated,
        rejected=len(rejected_rows),
        batch_id=batch_id,
        rejected_file=str(rejected_file) if rejected_file else None,
    )

@router.post("/ingestion/records/csv", tags=["Ingestion"], summary="Importar pegawai desde CSV (multipart)",
             response_model=ImportResult)
def ingest_records_csv(
    file: UploadFile = File(...),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    offset: int = Query(0, ge=0),
    limit: int = MAX_ROWS,
):
    if limit <= 0 or limit > MAX_ROWS:
        raise HTTPException(status_code=422, detail=f"limit debe ser 1..{MAX_ROWS}")
    df, total = _read_csv_upload(file, offset=offset, limit=limit)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(f"Faltan columnas {missing}")
    _validate_len(len(df))
    result = _ingest_records(_df_rows(df), store, settings, offset=offset)
    logger.info("csv_import file=%s offset=%d limit=%d total=%d", file.filename, offset, limit, total)
    return result

@router.post("/ingestion/records/json", tags=["Ingestion"], summary="Importar pegawai desde un array JSON",
             response_model=ImportResult)
def ingest_records_json(
    payload: Any = Body(...),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not isinstance(payload, list):
        raise ValidationError("Formato JSON no válido (debe ser un array)")
    _validate_len(len(payload))
    return _ingest_records(payload, store, settings)

@router.get("/ingestion/records/export", tags=["Ingestion"], summary="Exportar pegawai como JSON")
def export_records(store: RecordStore = Depends(get_store)):
    return JSONResponse(
        content=jsonable_encoder(store.list()),
        headers={"Content-Disposition": 'attachment; filename="data-asn.json"'},
    )
