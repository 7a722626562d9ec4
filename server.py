from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from reconstructor.errors import InputMissingError, RunInProgressError
from reconstructor.reconstruction_service import ReconstructionService

app = FastAPI()

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SERVICE = ReconstructionService()


def get_service() -> ReconstructionService:
    return SERVICE


class SourceFileOut(BaseModel):
    role: str
    name: str
    size: int
    size_label: str


class LogEntryOut(BaseModel):
    timestamp: str
    message: str
    severity: str


class StatsOut(BaseModel):
    totalRules: int
    reconstructedRules: int
    versionsProcessed: int
    semanticDepthPercent: int


class RunStateOut(BaseModel):
    phase: str
    busy: bool
    progress: int
    status_message: str
    status_kind: str
    stats: StatsOut
    result_text: str
    parse_failed: bool
    files: List[SourceFileOut]
    log: List[LogEntryOut]


def _state_out(service: ReconstructionService) -> RunStateOut:
    data = service.state.to_dict()
    data["log"] = [e.to_dict() for e in service.log_entries()]
    return RunStateOut(**data)


def _present(upload: Optional[UploadFile]) -> Optional[UploadFile]:
    # browsers send an empty part for an untouched file input
    if upload is None or not upload.filename:
        return None
    return upload


@app.post("/reconstructions", response_model=RunStateOut)
async def start_reconstruction(
    main_file: Optional[UploadFile] = File(None),
    skeleton_file: Optional[UploadFile] = File(None),
    dense_file: Optional[UploadFile] = File(None),
    index_file: Optional[UploadFile] = File(None),
    only_accepted: bool = Form(False),
    service: ReconstructionService = Depends(get_service),
):
    index_upload = _present(index_file)
    try:
        await service.start_reconstruction(
            _present(main_file),
            skeleton=_present(skeleton_file),
            dense=_present(dense_file),
            index=index_upload,
            # the toggle only exists while a rule index is selected
            only_accepted=bool(only_accepted and index_upload is not None),
        )
    except InputMissingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RunInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state_out(service)


@app.get("/reconstructions/state", response_model=RunStateOut)
async def get_state(service: ReconstructionService = Depends(get_service)):
    return _state_out(service)


@app.get("/reconstructions/result")
async def download_result(service: ReconstructionService = Depends(get_service)):
    try:
        content, filename = service.result_document()
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(
        content=content.encode("utf-8"),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/reconstructions/result/text", response_class=PlainTextResponse)
async def result_text(service: ReconstructionService = Depends(get_service)):
    try:
        content, _ = service.result_document()
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PlainTextResponse(content)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
