from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as StarletteUploadFile
import uvicorn

from config.settings import settings
from models.schemas import AnalysisRecord, HelloResponse, UploadErrorResponse
from services.hash_lookup import HashLookupService
from services.interpretation import InterpretationService
from utils.logger import get_logger
from workflows.file_analysis import FileAnalysisWorkflow, InputError

app = FastAPI(title="File Analysis Microservice", version="1.0.0")
logger = get_logger(__name__)

# Known-bad signatures are loaded once, before the first request
signatures = HashLookupService.from_settings(settings)
workflow = FileAnalysisWorkflow(
    signatures=signatures,
    interpreter=InterpretationService.from_settings(settings),
)
logger.info("Malware signature set ready | count=%s", len(signatures))


def get_workflow() -> FileAnalysisWorkflow:
    return workflow


def _rejection() -> JSONResponse:
    body = UploadErrorResponse(
        error="No file uploaded or file is empty.",
        message="Please select a file to upload.",
    )
    return JSONResponse(status_code=400, content=body.model_dump())


@app.get("/api/hello", response_model=HelloResponse)
async def hello():
    return HelloResponse(message="Hello from FastAPI!")


@app.post(
    "/api/upload",
    response_model=AnalysisRecord,
    responses={400: {"model": UploadErrorResponse}, 413: {"description": "Upload too large"}},
)
async def upload_file(
    request: Request,
    analysis_workflow: FileAnalysisWorkflow = Depends(get_workflow),
):
    """
    Analyze one uploaded file: hashes, embedded strings, file type guess,
    known-malware match and a Claude risk interpretation.

    Expects a multipart form with the file in the ``file`` field. A part sent
    with an empty filename arrives as a plain form value and is rejected like
    a missing file.
    """
    form = await request.form()
    try:
        file = form.get("file")
        if not isinstance(file, StarletteUploadFile):
            return _rejection()

        limit = settings.MAX_UPLOAD_BYTES
        if limit and file.size is not None and file.size > limit:
            raise HTTPException(status_code=413, detail=f"File exceeds {limit} byte limit.")

        data = await file.read()
        if limit and len(data) > limit:
            raise HTTPException(status_code=413, detail=f"File exceeds {limit} byte limit.")

        return await analysis_workflow.analyze(file.filename or "", data)

    except InputError:
        return _rejection()
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Upload analysis failed")
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        await form.close()


@app.get("/health")
async def health_check():
    """
    Health check endpoint
    """
    return {"status": "healthy", "service": "file-analysis"}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
