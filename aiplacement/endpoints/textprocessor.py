# Text processor placement: formatting actions and file text extraction
# aiplacement/endpoints/textprocessor.py
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from typing import List

from aiplacement.models.enums import TextAction
from aiplacement.services import file_extractor
from aiplacement.services.llm_client import get_textprocessor_backend
from aiplacement.services.text_processor import describe_actions, text_processor
from aiplacement.utils.config import settings
from aiplacement.utils.logger import logger

router = APIRouter()


def require_textprocessor_enabled():
    if not settings.textprocessor_enabled:
        raise HTTPException(status_code=403, detail="Text processor is disabled.")


class ProcessRequest(BaseModel):
    text: str
    action: str = TextAction.TO_HTML.value
    filename: str | None = None  # when set, `text` is the file's base64 content


class ProcessResponse(BaseModel):
    html: str
    success: bool
    message: str


class ActionInfo(BaseModel):
    action: str
    name: str
    icon: str
    description: str
    default: bool


class ExtractResponse(BaseModel):
    filename: str
    text: str
    success: bool
    message: str = ""


@router.post("/process", response_model=ProcessResponse, dependencies=[Depends(require_textprocessor_enabled)])
async def process(request: ProcessRequest, backend=Depends(get_textprocessor_backend)):
    logger.info(f"Text processing requested: action '{request.action}', {len(request.text)} characters")
    if request.filename:
        result = await text_processor.process_file(backend, request.text, request.filename, request.action)
    else:
        result = await text_processor.process(backend, request.text, request.action)
    return ProcessResponse(**result)


@router.get("/actions", response_model=List[ActionInfo], dependencies=[Depends(require_textprocessor_enabled)])
async def list_actions():
    return describe_actions()


@router.post("/extract", response_model=ExtractResponse, dependencies=[Depends(require_textprocessor_enabled)])
async def extract(file: UploadFile = File(...)):
    filename = file.filename or ""
    if not file_extractor.is_supported(filename):
        supported = ", ".join(file_extractor.SUPPORTED_TYPES)
        return ExtractResponse(filename=filename, text="", success=False,
                               message=f"Unsupported file type. Supported: {supported}")
    content = await file.read()
    try:
        text = await run_in_threadpool(file_extractor.extract_from_bytes, content, filename)
    except Exception as e:
        logger.warning(f"Could not extract text from '{filename}': {e}")
        return ExtractResponse(filename=filename, text="", success=False, message="Could not read the file.")
    if not text:
        return ExtractResponse(filename=filename, text="", success=False, message="No text found in the file.")
    return ExtractResponse(filename=filename, text=text, success=True)
