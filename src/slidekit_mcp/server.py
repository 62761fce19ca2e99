"""SlideKit MCP Server - slide element editing tools for MCP clients."""

from mcp.server.fastmcp import FastMCP, Context
import json
import logging
import mimetypes
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any, Optional
from pathlib import Path

from pydantic import ValidationError

from slidekit.core.canvas import PointerEvent, Rect
from slidekit.core.config import EditorConfig
from slidekit.core.errors import MediaRejected, MediaServerError
from slidekit.core.gestures import HANDLES
from slidekit.core.arrange import ALIGN_DIRECTIVES, DIMENSIONS, DIRECTIONS
from slidekit.core.slides import Slide
from slidekit.core.state import EditorSession
from slidekit.remote.media_server import MediaServerClient

# Configure logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("SlideKit")

_session = EditorSession(config=EditorConfig.from_env())
_media_server: Optional[MediaServerClient] = None


def get_media_server() -> MediaServerClient:
    global _media_server
    if _media_server is None:
        _media_server = MediaServerClient()
    return _media_server


def _slide_result(status: str, **extra) -> str:
    payload = {
        "status": status,
        "slide_id": _session.slide.id,
        "slide_type": _session.slide.type,
        "selected": _session.selected_id,
        "elements": _session.slide.to_summary(),
    }
    payload.update(extra)
    return json.dumps(payload, indent=2)


def _missing(element_id: str) -> Optional[str]:
    if _session.slide.element(element_id) is None:
        return f"Error: No element '{element_id}' on the current slide"
    return None


# ── Server Setup ────────────────────────────────────────────────────────

@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    try:
        logger.info("SlideKit server starting up")
        yield {}
    finally:
        _session.close()
        logger.info("SlideKit server shut down")


mcp = FastMCP("SlideKit", lifespan=server_lifespan)


# ═══════════════════════════════════════════════════════════════════════
# SLIDE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def load_slide(ctx: Context, slide_json: str) -> str:
    """Load a slide to edit.

    Parameters:
    - slide_json: The slide as JSON (id, title, media_elements, ...)
    """
    try:
        slide = Slide.model_validate_json(slide_json)
    except ValidationError as e:
        return f"Error loading slide: {str(e)}"
    _session.load(slide)
    return _slide_result("loaded")


@mcp.tool()
def get_slide(ctx: Context) -> str:
    """Get the full current slide, including every media element."""
    return json.dumps(_session.save().model_dump(mode="json"), indent=2)


# ═══════════════════════════════════════════════════════════════════════
# MEDIA TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def upload_media(ctx: Context, file_path: str, remote: bool = False) -> str:
    """Upload an image or video file and place it on the slide.

    Parameters:
    - file_path: Path to the image or video file
    - remote: Also store the file on the media server
    """
    path = Path(file_path)
    if not path.is_file():
        return f"Error: File not found: {file_path}"
    mimetype = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    data = path.read_bytes()

    try:
        item = _session.upload(path.name, data, mimetype)
    except MediaRejected as e:
        return f"Error: {str(e)}"

    result = {"library_item": item.id, "type": item.type, "ephemeral": item.ephemeral}
    if remote:
        try:
            remote_file = get_media_server().upload(path.name, data, mimetype)
            result["remote_url"] = remote_file.url
        except MediaServerError as e:
            result["remote_error"] = str(e)
    return _slide_result("uploaded", **result)


@mcp.tool()
def list_library(ctx: Context) -> str:
    """List media library items of this session."""
    items = [
        {
            "id": item.id,
            "name": item.name,
            "type": item.type,
            "size": item.size,
            "usage_count": item.usage_count,
            "ephemeral": item.ephemeral,
        }
        for item in _session.library.items
    ]
    return json.dumps({
        "items": items,
        "storage_used": _session.library.storage_used(),
        "live_handles": _session.resources.live_count,
    }, indent=2)


@mcp.tool()
def add_from_library(ctx: Context, item_id: str) -> str:
    """Place a media library item on the slide.

    Parameters:
    - item_id: Library item ID (from list_library)
    """
    if _session.library.get(item_id) is None:
        return f"Error: Library item '{item_id}' not found"
    _session.add_from_library(item_id)
    return _slide_result("added")


@mcp.tool()
def remove_library_item(ctx: Context, item_id: str) -> str:
    """Remove an item from the media library.

    Parameters:
    - item_id: Library item ID
    """
    if not _session.remove_library_item(item_id):
        return f"Error: Library item '{item_id}' not found"
    return f"Library item '{item_id}' removed."


@mcp.tool()
def media_server_status(ctx: Context) -> str:
    """Check the remote media server and report its storage usage."""
    server = get_media_server()
    if not server.is_available():
        return json.dumps({"available": False, "url": server.base_url}, indent=2)
    stats = server.storage_stats()
    return json.dumps({
        "available": True,
        "url": server.base_url,
        "used": stats.used,
        "total": stats.total,
        "percentage": stats.percentage,
        "file_count": stats.file_count,
    }, indent=2)


# ═══════════════════════════════════════════════════════════════════════
# ELEMENT TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def update_element(ctx: Context, element_id: str, x: float = None, y: float = None,
                   width: float = None, height: float = None, opacity: float = None,
                   border_radius: float = None, alt: str = None) -> str:
    """Update properties of a media element. Only provided fields are changed.

    Parameters:
    - element_id: Element ID
    - x, y: Position in canvas units (snapped to the grid when enabled)
    - width, height: Size in canvas units
    - opacity: 0.0 to 1.0
    - border_radius: Corner radius
    - alt: Alternative text
    """
    error = _missing(element_id)
    if error:
        return error
    changes = {
        k: v for k, v in {
            "x": x, "y": y, "width": width, "height": height,
            "opacity": opacity, "border_radius": border_radius, "alt": alt,
        }.items() if v is not None
    }
    if not changes:
        return "No changes specified."
    _session.update_element(element_id, **changes)
    return _slide_result("updated")


@mcp.tool()
def remove_element(ctx: Context, element_id: str) -> str:
    """Remove a media element from the slide."""
    error = _missing(element_id)
    if error:
        return error
    _session.remove_element(element_id)
    return _slide_result("removed")


@mcp.tool()
def duplicate_element(ctx: Context, element_id: str) -> str:
    """Duplicate a media element, offset down and to the right."""
    error = _missing(element_id)
    if error:
        return error
    _session.duplicate_element(element_id)
    return _slide_result("duplicated")


@mcp.tool()
def toggle_fullscreen(ctx: Context, element_id: str) -> str:
    """Toggle whether a media element covers the whole slide."""
    error = _missing(element_id)
    if error:
        return error
    _session.toggle_fullscreen(element_id)
    return _slide_result("updated")


@mcp.tool()
def bring_to_front(ctx: Context, element_id: str) -> str:
    """Move an element above every other element."""
    error = _missing(element_id)
    if error:
        return error
    _session.bring_to_front(element_id)
    return _slide_result("reordered")


@mcp.tool()
def send_to_back(ctx: Context, element_id: str) -> str:
    """Move an element below every other element."""
    error = _missing(element_id)
    if error:
        return error
    _session.send_to_back(element_id)
    return _slide_result("reordered")


@mcp.tool()
def align_element(ctx: Context, element_id: str, alignment: str) -> str:
    """Align an element to the canvas.

    Parameters:
    - element_id: Element ID
    - alignment: left, center, right, top, middle or bottom
    """
    if alignment not in ALIGN_DIRECTIVES:
        return f"Error: Unknown alignment '{alignment}'. Use one of: {', '.join(ALIGN_DIRECTIVES)}"
    error = _missing(element_id)
    if error:
        return error
    _session.align(element_id, alignment)
    return _slide_result("aligned")


@mcp.tool()
def nudge_element(ctx: Context, element_id: str, direction: str, amount: float = None) -> str:
    """Move an element one step.

    Parameters:
    - element_id: Element ID
    - direction: up, down, left or right
    - amount: Step in canvas units (defaults to the grid pitch)
    """
    if direction not in DIRECTIONS:
        return f"Error: Unknown direction '{direction}'"
    error = _missing(element_id)
    if error:
        return error
    _session.nudge(element_id, direction, amount)
    return _slide_result("moved")


@mcp.tool()
def resize_element_step(ctx: Context, element_id: str, dimension: str, delta: float) -> str:
    """Grow or shrink an element's width or height by a fixed amount.

    Parameters:
    - element_id: Element ID
    - dimension: width or height
    - delta: Change in canvas units (negative to shrink)
    """
    if dimension not in DIMENSIONS:
        return f"Error: Unknown dimension '{dimension}'"
    error = _missing(element_id)
    if error:
        return error
    _session.step_resize(element_id, dimension, delta)
    return _slide_result("resized")


@mcp.tool()
def rotate_element(ctx: Context, element_id: str, degrees: float) -> str:
    """Set an element's rotation in degrees."""
    error = _missing(element_id)
    if error:
        return error
    _session.rotate(element_id, degrees)
    return _slide_result("rotated")


# ═══════════════════════════════════════════════════════════════════════
# GESTURE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def drag_element(ctx: Context, element_id: str, dx: float, dy: float,
                 preview_width: float = 1200, preview_height: float = 675) -> str:
    """Drag an element by a pointer delta measured on a preview of the given size.

    Parameters:
    - element_id: Element ID
    - dx, dy: Pointer movement in preview pixels
    - preview_width, preview_height: Size of the preview the delta was measured on
    """
    error = _missing(element_id)
    if error:
        return error
    preview = Rect(0, 0, preview_width, preview_height)
    if not _session.pointer_down(PointerEvent(0, 0), element_id, preview):
        return f"Error: Could not drag '{element_id}' (locked, busy or invalid preview)"
    try:
        _session.pointer_move(PointerEvent(dx, dy))
    finally:
        _session.pointer_up()
    return _slide_result("moved")


@mcp.tool()
def resize_element(ctx: Context, element_id: str, handle: str, dx: float, dy: float,
                   preview_width: float = 1200, preview_height: float = 675) -> str:
    """Resize an element by dragging one of its handles.

    Parameters:
    - element_id: Element ID
    - handle: nw, n, ne, e, se, s, sw or w
    - dx, dy: Pointer movement in preview pixels
    - preview_width, preview_height: Size of the preview the delta was measured on
    """
    if handle not in HANDLES:
        return f"Error: Unknown handle '{handle}'. Use one of: {', '.join(HANDLES)}"
    error = _missing(element_id)
    if error:
        return error
    preview = Rect(0, 0, preview_width, preview_height)
    if not _session.pointer_down(PointerEvent(0, 0), element_id, preview, handle=handle):
        return f"Error: Could not resize '{element_id}' (locked or busy)"
    try:
        _session.pointer_move(PointerEvent(dx, dy))
    finally:
        _session.pointer_up()
    return _slide_result("resized")


# ═══════════════════════════════════════════════════════════════════════
# EDITOR SETTINGS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def toggle_lock(ctx: Context, element_id: str) -> str:
    """Lock or unlock an element against moves, resizes and reordering."""
    error = _missing(element_id)
    if error:
        return error
    locked = _session.toggle_lock(element_id)
    return json.dumps({"element_id": element_id, "locked": locked}, indent=2)


@mcp.tool()
def set_grid(ctx: Context, pitch: int = None, snap: bool = None, visible: bool = None) -> str:
    """Configure the snap grid.

    Parameters:
    - pitch: Grid spacing in canvas units
    - snap: Enable or disable snapping
    - visible: Show or hide the grid overlay
    """
    try:
        _session.set_grid(pitch=pitch, enabled=snap, visible=visible)
    except ValueError as e:
        return f"Error: {str(e)}"
    return json.dumps({
        "pitch": _session.grid.pitch,
        "snap": _session.grid.enabled,
        "visible": _session.config.show_grid,
    }, indent=2)


@mcp.tool()
def close_session(ctx: Context) -> str:
    """End editing and release every ephemeral media handle."""
    global _session
    _session.close()
    slide = _session.slide
    _session = EditorSession(slide=slide, config=EditorConfig.from_env())
    return "Session closed; a fresh session was started with the current slide."


# ═══════════════════════════════════════════════════════════════════════
# MCP PROMPT
# ═══════════════════════════════════════════════════════════════════════

@mcp.prompt()
def slide_editing_workflow() -> str:
    """Recommended workflow for arranging media on a slide"""
    return """You are helping the user arrange images and videos on a dashboard slide.

1. **Load**: Use load_slide() with the slide JSON, or start from the empty slide.

2. **Add media**: Use upload_media() with a local image or video file.
   - Images are compressed and kept in the library for reuse
   - Videos live only for this session
   - Use list_library() and add_from_library() to reuse uploads

3. **Arrange**: Positions are in a 1200x675 canvas.
   - Use align_element() to snap to edges or centre lines
   - Use nudge_element() and resize_element_step() for fine steps
   - Use drag_element() / resize_element() to replay pointer gestures
   - Use bring_to_front() / send_to_back() for layering

4. **Finish**: Use get_slide() to read the slide back for saving.

Tips:
- Use toggle_lock() to protect elements you are done with
- Use set_grid() to change or disable snapping
"""


# ── Main ────────────────────────────────────────────────────────────────

def main():
    """Run the MCP server"""
    mcp.run()


if __name__ == "__main__":
    main()
