from __future__ import annotations

import logging
import math
import os
from typing import List, Optional

import numpy as np
import pandas as pd
import uvicorn
from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import BulkImportRequest, ErrorResponse, ImportResponse, MessageResponse, ProductFiltersModel
from stock_core.charts import build_dashboard_charts
from stock_core.data import load_products
from stock_core.errors import InventoryError
from stock_core.filters import ProductFilters, apply_filters, normalize_filters
from stock_core.records import ProductRecord
from stock_core.stats import compute_stats
from stock_core.store import RecordStore


logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
XLSX_CONTENT_TYPES = {"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"}
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
EXPORT_COLUMNS = ["id", "name", "brand", "quantity", "expiryLabel", "expiryStatus", "damaged", "uploadedAt"]


def _cors_origins() -> List[str]:
    raw = os.getenv("STOCK_DASH_CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or DEFAULT_CORS_ORIGINS


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    body = ErrorResponse(error=str(exc), type=type(exc).__name__)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def _filters_from_model(model: ProductFiltersModel) -> ProductFilters:
    return normalize_filters(model.model_dump())


def _is_xlsx(upload: UploadFile) -> bool:
    if upload.content_type in XLSX_CONTENT_TYPES:
        return True
    return (upload.filename or "").lower().endswith(".xlsx")


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    app = FastAPI(title="Stock Expiry Dashboard API", version="0.1.0")
    app.state.store = store if store is not None else RecordStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health(store: RecordStore = Depends(get_store)):
        return _json({"status": "ok", "products": len(store)})

    @app.get("/api/products")
    def list_products(
        search: str = Query(default=""),
        status: List[str] = Query(default=[]),
        brand: List[str] = Query(default=[]),
        damaged: Optional[bool] = Query(default=None),
        page: Optional[int] = Query(default=None),
        page_size: int = Query(default=10),
        store: RecordStore = Depends(get_store),
    ):
        try:
            model = ProductFiltersModel(
                search=search, statuses=status, brands=brand, damaged=damaged, page=page, page_size=page_size
            )
            result = apply_filters(store.get_all(), _filters_from_model(model))
            return _json(
                {
                    "items": [r.to_dict() for r in result.items],
                    "total": result.total,
                    "page": result.page,
                    "page_size": result.page_size,
                    "pages": result.pages,
                }
            )
        except Exception as exc:
            logger.exception("list_products failed")
            return _error(exc, 500)

    @app.get("/api/dashboard/stats")
    def dashboard_stats(store: RecordStore = Depends(get_store)):
        try:
            return _json(compute_stats(store.snapshot()).to_dict())
        except Exception as exc:
            logger.exception("dashboard_stats failed")
            return _error(exc, 500)

    @app.get("/api/dashboard/charts")
    def dashboard_charts(store: RecordStore = Depends(get_store)):
        try:
            stats = compute_stats(store.snapshot())
            return _json({"charts": build_dashboard_charts(stats)})
        except Exception as exc:
            logger.exception("dashboard_charts failed")
            return _error(exc, 500)

    @app.post("/api/products/bulk")
    def bulk_import(payload: BulkImportRequest, store: RecordStore = Depends(get_store)):
        try:
            created = store.replace_all(payload.products)
        except InventoryError as exc:
            logger.warning("bulk_import rejected: %s", exc)
            return _error(exc, 400)
        except Exception as exc:
            logger.exception("bulk_import failed")
            return _error(exc, 500)
        return _json(ImportResponse(message="Products imported successfully", count=len(created)).model_dump())

    @app.post("/api/upload-excel")
    def upload_excel(file: UploadFile = File(...), store: RecordStore = Depends(get_store)):
        if not _is_xlsx(file):
            return _error(ValueError("Only .xlsx files are allowed"), 400)
        try:
            contents = file.file.read(MAX_UPLOAD_BYTES + 1)
            if len(contents) > MAX_UPLOAD_BYTES:
                return _error(ValueError("File exceeds the 10MB upload limit"), 413)
            parsed = load_products(contents)
            created = store.replace_all(parsed.products)
        except InventoryError as exc:
            logger.warning("upload_excel rejected %s: %s", file.filename, exc)
            return _error(exc, 400)
        except Exception as exc:
            logger.exception("upload_excel failed")
            return _error(exc, 500)

        logger.info("Imported %d products from %s (%d rows skipped)", len(created), file.filename, parsed.skipped_count)
        return _json(
            ImportResponse(
                message="File uploaded successfully",
                count=len(created),
                filename=file.filename,
                skipped=parsed.skipped_count,
                skipped_rows=[str(s) for s in parsed.skipped],
            ).model_dump()
        )

    @app.delete("/api/products/clear")
    def clear_products(store: RecordStore = Depends(get_store)):
        try:
            store.clear()
            return _json(MessageResponse(message="All products cleared successfully").model_dump())
        except Exception as exc:
            logger.exception("clear_products failed")
            return _error(exc, 500)

    @app.get("/api/export/products.csv")
    def export_products(store: RecordStore = Depends(get_store)):
        records: List[ProductRecord] = store.get_all()
        export_df = pd.DataFrame([r.to_dict() for r in records], columns=EXPORT_COLUMNS)
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=products.csv"},
        )

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn; host and port come from STOCK_DASH_HOST / STOCK_DASH_PORT."""
    host = os.getenv("STOCK_DASH_HOST", "127.0.0.1")
    port = int(os.getenv("STOCK_DASH_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)
