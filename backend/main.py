from fastapi import FastAPI, UploadFile, File, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from core.storage import get_session, replace_dataset
from server.api import router as chart_router, require_session_id, log_response, stats_payload
from skills.ingest import DatasetReadError, file_extension, read_table
from skills.summary import summarize_dataset
from app.models import UploadResponse
from core.utils import records_json_safe
from dotenv import load_dotenv
import logging

logger = logging.getLogger("uvicorn.error")
load_dotenv()
app = FastAPI(title="Datavue AI", description="Turn spreadsheets and prompts into charts")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount the chart API router
app.include_router(chart_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/upload")
async def upload(file: UploadFile = File(...), sid: str = Depends(require_session_id)):
    content = await file.read()
    filename = file.filename or "table.csv"

    try:
        dataset = read_table(content, filename)
    except DatasetReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # a new upload replaces the dataset and drops any chart configuration
    state = replace_dataset(
        sid,
        dataset,
        meta={
            "file_name": filename,
            "file_ext": file_extension(filename),
            "file_size": len(content),
        },
    )

    resp = UploadResponse(
        headers=dataset.headers,
        rows=dataset.row_count,
        meta=state.meta,
        statistics=stats_payload(summarize_dataset(dataset)),
    ).model_dump()
    log_response("UPLOAD", resp)
    return resp


@app.get("/dataset")
async def dataset_info(sid: str = Depends(require_session_id)):
    state = get_session(sid)
    if state.dataset is None:
        raise HTTPException(status_code=404, detail="No dataset uploaded.")
    return {
        "headers": state.dataset.headers,
        "rows": state.dataset.row_count,
        "meta": state.meta,
        "hasChart": state.config is not None,
    }


@app.get("/dataset/preview")
async def dataset_preview(offset: int = 0, limit: int = 50, sid: str = Depends(require_session_id)):
    """Get a preview of the raw rows with cursor pagination."""
    state = get_session(sid)
    if state.dataset is None:
        raise HTTPException(status_code=404, detail="No dataset uploaded.")

    # Cap limit at 100 rows per request
    offset = max(offset, 0)
    limit = max(min(limit, 100), 0)

    rows = state.dataset.rows
    total_rows = len(rows)
    end = min(offset + limit, total_rows)
    page = records_json_safe(rows[offset:end])

    has_more = end < total_rows
    return {
        "columns": state.dataset.headers,
        "rows": page,
        "total_rows": total_rows,
        "offset": offset,
        "limit": limit,
        "returned_rows": len(page),
        "has_more": has_more,
        "next_offset": end if has_more else None,
    }
