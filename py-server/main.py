"""PDF Element Overlay Python Server"""

import sys
import logging
import asyncio
import hashlib
import json
import tempfile
from contextlib import asynccontextmanager
from typing import Optional, List
import os

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from rich.console import Console
from rich.logging import RichHandler

from engine.config import SessionConfig
from engine.document_session import DocumentSession, SessionStore
from models.pdf_types import (
    DocumentElement,
    ElementExtractionOptions,
    ElementType,
    RescaleRequest,
    ScaleChangeRequest,
    SessionStateResponse,
)
from extractors.element_extractor import extract_elements, render_page_image
from utils.endpoint_decorators import handle_pdf_processing
from utils.rescale import rescale_elements

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_CACHE_MAX_AGE = 3600
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600
DEFAULT_SCALE = 1.0
MAX_SCALE = 10.0

logger = logging.getLogger("rich")

session_store = SessionStore(SessionConfig())


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await session_store.close_all()


app = FastAPI(
    title="PDF Element Overlay API",
    description="Extract interactive document elements from PDF files",
    version=API_VERSION,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session(session_id: str) -> DocumentSession:
    try:
        return session_store.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


def _session_state(session: DocumentSession) -> SessionStateResponse:
    state = session.state
    if state is None:
        raise HTTPException(status_code=409, detail=f"Session {session.session_id} has no published elements")
    return SessionStateResponse(
        sessionId=session.session_id,
        pageCount=session.page_count,
        scale=state.scale,
        generation=state.generation,
        elements=[list(page) for page in state.elements_by_page],
    )


def _png_response(png: bytes, etag: str) -> Response:
    return Response(
        content=png,
        media_type="image/png",
        headers={
            "ETag": etag,
            "Cache-Control": f"public, max-age={DEFAULT_CACHE_MAX_AGE}",
            "Content-Length": str(len(png))
        }
    )


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "message": "PDF Element Overlay API",
        "version": API_VERSION,
        "features": [
            "Text runs grouped into lines and classified (heading, title, list item, ...)",
            "Annotation and link elements",
            "Form field elements",
            "Image paint operators (estimated placement)",
            "Rescaling element geometry without re-parsing",
            "Page rendering to PNG",
            "Interactive document sessions with cancellable zoom"
        ]
    }


@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import PIL
        import pdfminer
        import pdfplumber
        import pikepdf
        import numpy

        return {
            "status": "healthy",
            "version": API_VERSION,
            "features": {
                "text_extraction": "pdfminer.six",
                "annotation_extraction": "pikepdf",
                "image_operators": "pikepdf",
                "page_rendering": "pdfplumber"
            },
            "dependencies": {
                "PIL": PIL.__version__,
                "pdfminer": pdfminer.__version__,
                "pdfplumber": pdfplumber.__version__,
                "pikepdf": pikepdf.__version__,
                "numpy": numpy.__version__
            },
            "sessions": len(session_store)
        }
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )


@app.post("/extract-pdf-elements", response_model=List[List[DocumentElement]])
@handle_pdf_processing
async def extract_pdf_elements(
    *,
    request: Request,
    file: UploadFile = File(...),
    scale: float = Query(DEFAULT_SCALE, gt=0, le=MAX_SCALE, description="Zoom factor for element geometry"),
    start_page: Optional[int] = Query(1, ge=1, description="Starting page number (1-based)"),
    end_page: Optional[int] = Query(None, ge=1, description="Ending page number (1-based), None for all pages"),
    config: Optional[str] = Form(None, description="Optional JSON string containing ElementExtractionOptions"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Extract interactive document elements from a PDF.

    **Element kinds (in per-page order):**
    - `text`: one element per text run, classified as heading, subheading, title, list-item, symbol or paragraph
    - `annotation`: links, notes and widgets, with a minimum 10x10 hit area
    - `image`: one element per image paint operator, at an estimated stacked position
    - `form-field`: widget annotations carrying a field type, with a minimum 20x15 hit area

    **Configuration (JSON):**
    - `extract_text`, `extract_annotations`, `extract_images`, `extract_form_fields` (default: `true`)
    - `line_tolerance`, `line_height_ratio`: line grouping thresholds

    **Returns:**
    - Array of element lists (one per page), geometry in viewport pixels at `scale`
    """
    temp_file_path = request.state.temp_file_path

    options = None
    if config:
        try:
            options = ElementExtractionOptions(**json.loads(config)).model_dump()
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSON in config: {str(e)}")
        except Exception as e:
            raise HTTPException(status_code=400, detail=f"Invalid config structure: {str(e)}")

    logger.info(f"Extracting elements (pages {start_page} to {end_page or 'end'}, scale {scale})")

    pages = await asyncio.to_thread(
        extract_elements,
        temp_file_path,
        scale=scale,
        start_page=start_page,
        end_page=end_page,
        options=options
    )

    total = sum(len(page) for page in pages)
    logger.info(f"Successfully extracted {total} elements from {len(pages)} pages")
    return pages


@app.post("/rescale-elements", response_model=List[DocumentElement])
async def rescale_document_elements(body: RescaleRequest):
    """
    Move an element list to a new scale without re-parsing.

    Geometry (`x`, `y`, `width`, `height`, `fontSize`) is multiplied by
    `new_scale / old_scale`; everything else is carried over.
    """
    try:
        return rescale_elements(body.elements, body.new_scale, body.old_scale)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/render-pdf-page")
@handle_pdf_processing
async def render_pdf_page(
    *,
    request: Request,
    file: UploadFile = File(...),
    page_number: int = Query(..., ge=1, description="Page number (1-based)"),
    scale: float = Query(DEFAULT_SCALE, gt=0, le=MAX_SCALE, description="Zoom factor (1.0 = 72 dpi)"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Render a PDF page to PNG at a scale.

    **Returns:**
    - `image/png` sized to the page viewport at `scale`
    - Response headers: `ETag`, `Cache-Control` (1 hour)
    """
    temp_file_path = request.state.temp_file_path
    file_content = request.state.file_content

    content_hash = hashlib.md5(file_content).hexdigest()[:16]
    etag = f'"{content_hash}-p{page_number}-s{scale:g}"'

    logger.info(f"Rendering page {page_number} at scale {scale}")

    png = await asyncio.to_thread(render_page_image, temp_file_path, page_number, scale)

    logger.info(f"Successfully rendered page {page_number} ({len(png)} bytes)")
    return _png_response(png, etag)


@app.post("/sessions", response_model=SessionStateResponse)
@handle_pdf_processing
async def create_session(
    *,
    request: Request,
    file: UploadFile = File(...),
    scale: float = Query(DEFAULT_SCALE, gt=0, le=MAX_SCALE, description="Initial zoom factor"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Open a document session and extract its elements at `scale`.

    The session keeps its own copy of the upload until it is deleted.
    """
    file_content = request.state.file_content

    session_file = tempfile.NamedTemporaryFile(delete=False, suffix='.pdf')
    session_file.write(file_content)
    session_file.close()

    session = DocumentSession(session_file.name, session_config=session_store.config, owns_file=True)
    try:
        await session.open()
        await session.load(scale)
    except BaseException:
        await session.close()
        raise

    await session_store.add(session)
    logger.info(f"Created session {session.session_id} for {file.filename} ({session.page_count} pages)")
    return _session_state(session)


@app.get("/sessions/{session_id}", response_model=SessionStateResponse)
async def get_session(session_id: str):
    """Current published view state of a session"""
    return _session_state(_get_session(session_id))


@app.get("/sessions/{session_id}/elements", response_model=List[DocumentElement])
async def get_session_elements(
    session_id: str,
    page_number: Optional[int] = Query(None, ge=1, description="Only elements of this page"),
    element_type: Optional[ElementType] = Query(None, description="Only elements of this kind")
):
    """Published elements of a session, optionally filtered by page and kind"""
    session = _get_session(session_id)
    return session.elements(page_number=page_number, element_type=element_type)


@app.put("/sessions/{session_id}/scale", response_model=SessionStateResponse)
async def change_session_scale(session_id: str, body: ScaleChangeRequest):
    """
    Change a session's scale.

    Outstanding renders and extractions are cancelled first. With
    `strategy=rescale` the published geometry is multiplied; with `reparse`
    the document is extracted again at the new scale.
    """
    session = _get_session(session_id)
    state = await session.set_scale(body.scale, body.strategy)
    if state is None:
        raise HTTPException(status_code=409, detail="Scale change superseded by a newer request")
    return _session_state(session)


@app.get("/sessions/{session_id}/pages/{page_number}/image")
async def get_session_page_image(session_id: str, page_number: int):
    """Rendered PNG of a session page at the session's current scale"""
    session = _get_session(session_id)
    if page_number < 1 or page_number > session.page_count:
        raise HTTPException(status_code=404, detail=f"Page {page_number} not found")

    png = session.canvas(page_number)
    if png is None:
        png = await session.render_page(page_number)
    if png is None:
        raise HTTPException(status_code=404, detail=f"Page {page_number} could not be rendered")

    etag = f'"{session.session_id[:16]}-p{page_number}-g{session.state.generation}"'
    return _png_response(png, etag)


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Close a session and release its document"""
    try:
        await session_store.remove(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"deleted": session_id}


def _configure_server_logging():
    """Configure logging with Rich handler and filters for clean output"""
    console = Console(force_terminal=True)

    # Get level from env, default to INFO
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    class ShutdownFilter(logging.Filter):
        """Filter out shutdown-related log messages"""
        def filter(self, record):
            if record.exc_info and record.exc_info[0] in (KeyboardInterrupt, asyncio.CancelledError):
                return False
            if "CancelledError" in str(record.msg) or "KeyboardInterrupt" in str(record.msg):
                return False
            return True

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=True
    )
    rich_handler.addFilter(ShutdownFilter())

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler])

    # Allow server startup logs
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)

    # Set specific module log levels
    for module_name in ["main", "rich", "engine", "extractors", "processors", "utils"]:
        logging.getLogger(module_name).setLevel(log_level)

    return console


def _find_free_port(start_port: int = 8000) -> int:
    """Find an available port starting from the given port"""
    import socket

    port = start_port
    max_port = start_port + 100

    while port < max_port:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('localhost', port))
                return port
        except OSError:
            port += 1

    return start_port


server_console = _configure_server_logging()

if __name__ == "__main__":
    free_port = _find_free_port()
    server_console.print(f"[bold green]🚀 Starting server on http://localhost:{free_port}[/bold green]")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=free_port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]🛑 Server stopped.[/bold yellow]")
        sys.exit(0)
