"""FastAPI web adapter for the LC-3 virtual machine."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from typing import Optional
from pathlib import Path
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lc3vm import run_program, RunOptions, Image


# Constants
MAX_TOTAL_WORDS = 1 << 16
STATIC_DIR = Path(__file__).parent.parent / "static"


# Request/Response models
class ImageModel(BaseModel):
    origin: int = Field(default=0x3000, ge=0, le=0xFFFF)
    words: list[int] = Field(default_factory=list)


class RunOptionsModel(BaseModel):
    start_address: Optional[int] = Field(default=None, ge=0, le=0xFFFF)
    max_steps: int = Field(default=10000, ge=1, le=1000000)
    trace: bool = True
    trace_watch: list[int] = Field(default_factory=list)
    trace_include_io: bool = True
    initial_memory: dict[str, int] = Field(default_factory=dict)


class RunRequest(BaseModel):
    origin: int = Field(default=0x3000, ge=0, le=0xFFFF)
    words: list[int] = Field(default_factory=list)
    images: list[ImageModel] = Field(default_factory=list)
    input: str = ""
    options: Optional[RunOptionsModel] = None


class RunResponse(BaseModel):
    status: str
    output_text: str
    steps_executed: int
    final_state: dict
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[dict] = None


# Create FastAPI app
app = FastAPI(
    title="LC-3 Virtual Machine",
    description="Web API for executing LC-3 program images with tracing",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _parse_address(key: str) -> int:
    """Parse a memory address key given in decimal or 0x/x-prefixed hex."""
    text = key.strip().lower()
    if text.startswith("x"):
        text = "0" + text
    try:
        addr = int(text, 0)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid memory address key: {key}",
        )
    if not 0 <= addr <= 0xFFFF:
        raise HTTPException(
            status_code=400,
            detail=f"Memory address out of range: {key}",
        )
    return addr


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Execute an LC-3 program.

    Args:
        request: Image words, input buffer, and execution options

    Returns:
        Execution result with output, trace, and final state
    """
    image_models = list(request.images)
    if request.words:
        image_models.insert(0, ImageModel(origin=request.origin, words=request.words))

    if not image_models:
        raise HTTPException(status_code=400, detail="No program words given")

    total_words = sum(len(m.words) for m in image_models)
    if total_words > MAX_TOTAL_WORDS:
        raise HTTPException(
            status_code=400,
            detail=f"Program size exceeds limit of {MAX_TOTAL_WORDS} words",
        )

    for m in image_models:
        if any(not 0 <= w <= 0xFFFF for w in m.words):
            raise HTTPException(
                status_code=400,
                detail="Program words must be in range 0..0xFFFF",
            )

    images = [
        Image(origin=m.origin, words=m.words[: MAX_TOTAL_WORDS - m.origin], name=f"image{i}")
        for i, m in enumerate(image_models)
    ]

    # Build options
    opts = request.options or RunOptionsModel()

    # Convert initial_memory keys from string to int
    initial_memory = {}
    for k, v in opts.initial_memory.items():
        initial_memory[_parse_address(k)] = v

    run_opts = RunOptions(
        start_address=opts.start_address,
        max_steps=opts.max_steps,
        trace=opts.trace,
        trace_watch=opts.trace_watch,
        trace_include_io=opts.trace_include_io,
        initial_memory=initial_memory,
    )

    # Execute program
    result = run_program(
        images,
        input_text=request.input,
        options=run_opts,
    )

    return result.to_dict()


# Mount static files AFTER API routes to prevent shadowing
if STATIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
