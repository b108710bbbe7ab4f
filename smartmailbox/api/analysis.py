"""Analysis endpoint: upload in, AnalysisResult out. Nothing is saved here."""

from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from ..schemas.analysis import AnalysisResult
from ..services import AnalysisPipeline, AnalysisRequest
from ..services.input_normalizer import InputKind, UploadedFile
from .deps import get_pipeline, require_user

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze", response_model=AnalysisResult)
async def analyze_document(
    kind: InputKind = Form(...),
    files: List[UploadFile] = File(...),
    detect_events: bool = Form(True),
    user_id: str = Depends(require_user),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Rectify or transcribe the upload, then synthesize metadata and events.

    The result is returned for review; save it with ``POST /api/documents``.
    """
    uploads = [
        UploadedFile(
            data=await f.read(),
            content_type=f.content_type or "application/octet-stream",
            filename=f.filename or "",
        )
        for f in files
    ]
    request = AnalysisRequest(kind=kind, files=uploads, detect_events=detect_events)
    return await run_in_threadpool(pipeline.analyze, request)
