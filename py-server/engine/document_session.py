"""
Document Session - interactive view state over one open document.

A session owns its PDFEngine exclusively and publishes immutable ViewState
snapshots (scale + per-page element lists). All document work runs on a
single dedicated worker thread, so the engine is never touched concurrently
and the event loop only awaits.

Scale changes cancel in-flight work first: every extraction and every page
render carries its own CancellationToken, and a result whose token was
cancelled is never published.

Usage:
    >>> session = DocumentSession('book.pdf')
    >>> await session.open()
    >>> await session.load(scale=1.0)
    >>> await session.set_scale(1.5)
    >>> canvases = await session.render_all_pages()
    >>> await session.close()
"""

import asyncio
import logging
import os
import threading
import uuid
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from engine.config import EngineConfig, PageRange, SessionConfig
from engine.element_builder import ElementBuilder
from engine.pdf_engine import PDFEngine
from models.pdf_types import DocumentElement, ElementType, ScaleStrategy
from utils.element_queries import filter_elements_by_type
from utils.errors import RenderCancelled, RenderFailure
from utils.rescale import rescale_pages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewState:
    """Published (scale, element lists) pair. Replaced whole, never mutated."""
    scale: float
    elements_by_page: Tuple[Tuple[DocumentElement, ...], ...]
    generation: int

    @property
    def page_count(self) -> int:
        return len(self.elements_by_page)


class CancellationToken:
    """Cancellation flag for one in-flight operation, safe to read from the worker thread"""

    def __init__(self, label: str = ""):
        self.label = label
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "live"
        return f"CancellationToken({self.label}, {state})"


class DocumentSession:
    """
    Interactive session over one PDF document.

    Attributes:
        session_id: Unique id used by the session store
        state: Last published ViewState, None until the first load completes
    """

    def __init__(
        self,
        file_path: str,
        engine_config: Optional[EngineConfig] = None,
        session_config: Optional[SessionConfig] = None,
        builder: Optional[ElementBuilder] = None,
        engine: Optional[PDFEngine] = None,
        owns_file: bool = False,
        session_id: Optional[str] = None,
    ):
        """
        Args:
            file_path: PDF file backing the session
            engine_config: Engine and processor configuration
            session_config: Scale-change and rendering behaviour
            builder: Element builder (built from engine_config if None)
            engine: Pre-built engine (created from file_path if None)
            owns_file: Delete file_path when the session closes
            session_id: Explicit id (random if None)
        """
        self.file_path = file_path
        self.engine_config = engine_config or EngineConfig.default()
        self.session_config = session_config or SessionConfig()
        if not self.session_config.validate():
            raise ValueError("Invalid session configuration")

        self.session_id = session_id or uuid.uuid4().hex
        self.owns_file = owns_file
        self.state: Optional[ViewState] = None

        self._engine = engine or PDFEngine(file_path, config=self.engine_config)
        self._builder = builder or ElementBuilder.from_config(self.engine_config)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"session-{self.session_id[:8]}")

        self._page_count = 0
        self._generation = 0
        self._extraction_token: Optional[CancellationToken] = None
        self._render_tasks: Dict[int, Tuple[asyncio.Task, CancellationToken]] = {}
        self._render_batches: List[CancellationToken] = []
        self._canvases: Dict[int, bytes] = {}
        self._closed = False

    async def _run(self, func, *args):
        """Run blocking document work on the session's worker thread"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    # Lifecycle

    async def open(self) -> int:
        """
        Open the document.

        Returns:
            Page count

        Raises:
            PdfValidationError: If the document cannot be opened
        """
        await self._run(self._engine.open)
        self._page_count = self._engine.get_page_count()
        logger.info(f"Session {self.session_id}: opened {self._page_count} pages")
        return self._page_count

    async def close(self) -> None:
        """Cancel all work, release the document and the worker thread"""
        if self._closed:
            return
        self._closed = True

        if self._extraction_token is not None:
            self._extraction_token.cancel()
        tasks = self.cancel_all_renders()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        try:
            await self._run(self._engine.close)
            await self._run(self._builder.close)
        finally:
            self._executor.shutdown(wait=False)
            if self.owns_file and os.path.exists(self.file_path):
                try:
                    os.unlink(self.file_path)
                except OSError as e:
                    logger.warning(f"Session {self.session_id}: failed to remove {self.file_path}: {e}")

        self.state = None
        self._canvases.clear()
        logger.info(f"Session {self.session_id}: closed")

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def is_closed(self) -> bool:
        return self._closed

    # Extraction

    def _publish(self, scale: float, pages: List[List[DocumentElement]]) -> ViewState:
        self._generation += 1
        self.state = ViewState(
            scale=scale,
            elements_by_page=tuple(tuple(page) for page in pages),
            generation=self._generation,
        )
        # Renders still in flight belong to the previous state
        self.cancel_all_renders()
        self._canvases.clear()
        logger.debug(f"Session {self.session_id}: published generation {self._generation} at scale {scale}")
        return self.state

    async def load(self, scale: float) -> Optional[ViewState]:
        """
        Extract all pages at `scale` and publish the result.

        Any in-flight extraction and every outstanding render are cancelled
        first. Nothing is published until every page
        is done.

        Returns:
            The published ViewState, or None if this load was superseded
        """
        self._ensure_open()
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")

        if self._extraction_token is not None:
            self._extraction_token.cancel()
        self.cancel_all_renders()
        token = CancellationToken(f"extract@{scale}")
        self._extraction_token = token

        pages = await self._run(
            self._builder.build_document_elements,
            self._engine,
            scale,
            PageRange.all_pages(),
            lambda: not token.cancelled,
        )

        if token.cancelled:
            logger.debug(f"Session {self.session_id}: discarding superseded extraction at scale {scale}")
            return None

        self._extraction_token = None
        return self._publish(scale, pages)

    async def set_scale(self, scale: float, strategy: Optional[Union[ScaleStrategy, str]] = None) -> Optional[ViewState]:
        """
        Move the session to a new scale.

        Outstanding renders are cancelled before any new work starts.

        Args:
            scale: New zoom factor
            strategy: reparse (extract again) or rescale (multiply the
                published geometry); session default if None

        Returns:
            The published ViewState, or None if superseded by a later change
        """
        self._ensure_open()
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")

        if strategy is None:
            strategy = ScaleStrategy.REPARSE if self.session_config.reparse_on_scale_change else ScaleStrategy.RESCALE
        strategy = ScaleStrategy(strategy)

        self.cancel_all_renders()

        if strategy == ScaleStrategy.RESCALE and self.state is not None:
            if self._extraction_token is not None:
                self._extraction_token.cancel()
                self._extraction_token = None
            current = self.state
            pages = rescale_pages(current.elements_by_page, scale, current.scale)
            logger.info(f"Session {self.session_id}: rescaled {current.scale} -> {scale}")
            return self._publish(scale, pages)

        logger.info(f"Session {self.session_id}: reparsing at scale {scale}")
        return await self.load(scale)

    def elements(
        self,
        page_number: Optional[int] = None,
        element_type: Optional[Union[ElementType, str]] = None,
    ) -> List[DocumentElement]:
        """Published elements, optionally for one page and/or one kind"""
        if self.state is None:
            return []

        if page_number is not None:
            if page_number < 1 or page_number > self.state.page_count:
                return []
            elements = list(self.state.elements_by_page[page_number - 1])
        else:
            elements = [element for page in self.state.elements_by_page for element in page]

        if element_type is not None:
            elements = filter_elements_by_type(elements, element_type)
        return elements

    # Rendering

    def canvas(self, page_number: int) -> Optional[bytes]:
        """Rendered PNG of a page at the current scale, if any"""
        return self._canvases.get(page_number)

    async def _render(self, page_number: int, view: ViewState, token: CancellationToken) -> bytes:
        scale = view.scale
        try:
            png = await self._run(self._engine.render_page, page_number, scale)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Session {self.session_id}: rendering page {page_number} failed: {e}")
            raise RenderFailure(page_number, f"Rendering of page {page_number} failed: {e}") from e

        if token.cancelled or self.state is None or self.state.generation != view.generation:
            raise RenderCancelled(page_number)

        self._canvases[page_number] = png
        return png

    async def render_page(self, page_number: int) -> Optional[bytes]:
        """
        Render one page at the current scale.

        A previous render of the same page is cancelled. Cancellation is
        swallowed; failures are logged and leave the page without a canvas.

        Returns:
            PNG bytes, or None if the render was cancelled or failed
        """
        self._ensure_open()
        if self.state is None:
            raise RuntimeError("Session has no elements yet - call load() first")

        previous = self._render_tasks.get(page_number)
        if previous is not None:
            previous[1].cancel()
            previous[0].cancel()

        token = CancellationToken(f"render-{page_number}@{self.state.scale}")
        task = asyncio.create_task(self._render(page_number, self.state, token))
        self._render_tasks[page_number] = (task, token)

        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug(f"Session {self.session_id}: render of page {page_number} cancelled")
            return None
        except RenderCancelled as e:
            logger.debug(f"Session {self.session_id}: {e}")
            return None
        except RenderFailure:
            return None
        finally:
            entry = self._render_tasks.get(page_number)
            if entry is not None and entry[0] is task:
                del self._render_tasks[page_number]

    async def render_all_pages(self) -> Dict[int, bytes]:
        """
        Render every page sequentially with a short stagger between pages.

        Returns:
            Canvases rendered by this batch, keyed by page number. Pages
            that failed are absent.
        """
        self._ensure_open()
        batch = CancellationToken("render-all")
        self._render_batches.append(batch)

        rendered: Dict[int, bytes] = {}
        try:
            for page_number in range(1, self._page_count + 1):
                if batch.cancelled:
                    logger.debug(f"Session {self.session_id}: render batch cancelled at page {page_number}")
                    break
                png = await self.render_page(page_number)
                if png is not None:
                    rendered[page_number] = png
                await asyncio.sleep(self.session_config.render_stagger_seconds)
        finally:
            self._render_batches.remove(batch)

        return rendered

    def cancel_all_renders(self) -> List[asyncio.Task]:
        """
        Cancel every outstanding render task and render batch.

        Returns:
            The cancelled tasks, so callers can await their completion
        """
        for batch in self._render_batches:
            batch.cancel()

        tasks = []
        for page_number, (task, token) in list(self._render_tasks.items()):
            token.cancel()
            if not task.done():
                task.cancel()
                tasks.append(task)
        if tasks:
            logger.debug(f"Session {self.session_id}: cancelled {len(tasks)} render tasks")
        self._render_tasks.clear()
        return tasks

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Session {self.session_id} is closed")

    def __repr__(self) -> str:
        scale = self.state.scale if self.state else None
        return f"DocumentSession({self.session_id}, {self._page_count} pages, scale={scale})"


class SessionStore:
    """Bounded in-memory registry of document sessions, oldest evicted first"""

    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self._sessions: 'OrderedDict[str, DocumentSession]' = OrderedDict()

    async def add(self, session: DocumentSession) -> DocumentSession:
        """Register a session, closing the oldest one when the store is full"""
        while len(self._sessions) >= self.config.max_sessions:
            oldest_id, oldest = self._sessions.popitem(last=False)
            logger.info(f"Session store full, evicting session {oldest_id}")
            await oldest.close()

        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> DocumentSession:
        """
        Raises:
            KeyError: If no such session exists
        """
        return self._sessions[session_id]

    async def remove(self, session_id: str) -> None:
        """
        Close and forget a session.

        Raises:
            KeyError: If no such session exists
        """
        session = self._sessions.pop(session_id)
        await session.close()

    async def close_all(self) -> None:
        while self._sessions:
            _, session = self._sessions.popitem(last=False)
            await session.close()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
