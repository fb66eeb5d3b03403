import asyncio
import json
import logging
from typing import Any

from aiortc import RTCPeerConnection, RTCSessionDescription
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel, ValidationError

from timemark import event_bus
from timemark.bus import PROGRESS_TOPIC
from timemark.capture import CaptureError, ExportArtifact
from timemark.config import config
from timemark.messages import CaptureProgress, LayoutNudge, LayoutUpdate, PointerEvent, PointerKind
from timemark.model import UnknownElementError, UnknownFieldError, coerce_number
from timemark.nodes.studio import StudioNode
from timemark.studio import Studio
from timemark.web.preview import create_peer_connection, generate_mjpeg

logger = logging.getLogger(__name__)

app = FastAPI(title="Timemark Studio")

studio = Studio()
studio_node = StudioNode(studio)

# Keep peer connections alive
_peer_connections: set[RTCPeerConnection] = set()


def _on_progress(progress: float) -> None:
    capture = studio.capture
    message = CaptureProgress(progress=progress, running=capture is not None and capture.running)
    asyncio.get_running_loop().create_task(event_bus.publish_progress(message))


studio.on_progress = _on_progress


async def _run_peer_connection(pc: RTCPeerConnection) -> None:
    """Keep peer connection alive until it closes."""

    @pc.on("connectionstatechange")
    async def on_connectionstatechange() -> None:
        if pc.connectionState in ["closed", "failed"]:
            logger.info(f"Peer connection {pc.connectionState}, cleaning up")
            _peer_connections.discard(pc)
            await pc.close()


@app.on_event("startup")
async def on_startup() -> None:
    studio.start()
    await studio_node.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    studio.close()
    for pc in list(_peer_connections):
        await pc.close()
    _peer_connections.clear()


def _download(artifact: ExportArtifact) -> Response:
    return Response(
        content=artifact.data,
        media_type=artifact.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/config")
async def get_config() -> dict[str, Any]:
    """Получить настройки для клиента"""
    return {
        "render": config.render.model_dump(),
        "interaction": config.interaction.model_dump(),
        "capture": config.capture.model_dump(),
    }


# --- layout / content ---


class NudgeRequest(BaseModel):
    field: str
    direction: float = 1.0


@app.get("/api/layout")
async def get_layout() -> dict[str, Any]:
    return studio.store.layout.model_dump(by_alias=True)


@app.put("/api/layout")
async def put_layout(layout: dict[str, Any]) -> dict[str, Any]:
    try:
        studio.store.replace(layout)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return studio.store.layout.model_dump(by_alias=True)


@app.patch("/api/layout/{element}")
async def patch_element(element: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Изменить числовые поля одного элемента"""
    try:
        studio.store.get(element)
        updated = None
        for name, value in fields.items():
            updated = studio.update(element, name, value)
        return (updated or studio.store.get(element)).model_dump(by_alias=True)
    except UnknownElementError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown element {element}") from exc
    except UnknownFieldError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/api/layout/{element}/nudge")
async def nudge_element(element: str, request: NudgeRequest) -> dict[str, Any]:
    try:
        updated = studio.nudge(element, request.field, coerce_number(request.direction))
    except UnknownElementError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown element {element}") from exc
    except UnknownFieldError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return updated.model_dump(by_alias=True)


@app.post("/api/layout/reset")
async def reset_layout() -> dict[str, Any]:
    studio.store.reset()
    return studio.store.layout.model_dump(by_alias=True)


@app.get("/api/content")
async def get_content() -> dict[str, Any]:
    return studio.store.content.model_dump(by_alias=True)


@app.put("/api/content")
async def put_content(fields: dict[str, Any]) -> dict[str, Any]:
    """Обновить текст; отсутствующие поля сохраняют текущие значения"""
    data = studio.store.content.model_dump(by_alias=True)
    data.update(fields)
    try:
        studio.store.set_content(data)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return studio.store.content.model_dump(by_alias=True)


# --- assets ---


@app.post("/api/assets/{kind}")
async def upload_asset(kind: str, request: Request) -> dict[str, Any]:
    """Загрузить исходник: тело запроса - файл целиком"""
    loaders = {
        "image": studio.load_image,
        "video": studio.load_video,
        "logo": studio.load_logo,
        "map": studio.load_map_image,
        "map_video": studio.load_map_video,
    }
    loader = loaders.get(kind)
    if loader is None:
        raise HTTPException(status_code=404, detail=f"Unknown asset kind {kind}")
    if studio.exporting:
        raise HTTPException(status_code=409, detail="Export in progress")

    data = await request.body()
    try:
        loader(data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    studio.render()
    return {"kind": kind, "width": studio.surface.width, "height": studio.surface.height}


@app.delete("/api/assets/map")
async def clear_map() -> dict[str, str]:
    studio.clear_map()
    return {"status": "ok"}


# --- export ---


@app.post("/api/export/image")
async def export_image() -> Response:
    try:
        artifact = studio.export_image()
    except CaptureError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _download(artifact)


@app.post("/api/export/video")
async def export_video() -> Response:
    if studio.video is None:
        raise HTTPException(status_code=409, detail="No main video loaded")
    if studio.capture is not None and studio.capture.running:
        raise HTTPException(status_code=409, detail="Recording already in progress")
    try:
        artifact = await studio.export_video()
    except CaptureError as exc:
        logger.error("Video export failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return _download(artifact)


# --- preview ---


@app.get("/preview.mjpg")
async def preview() -> StreamingResponse:
    return StreamingResponse(
        generate_mjpeg(studio),
        media_type="multipart/x-mixed-replace; boundary=frame",
    )


class Offer(BaseModel):
    sdp: str
    type: str


@app.post("/webrtc/offer")
async def webrtc_offer(offer: Offer) -> dict[str, Any]:
    pc: RTCPeerConnection = await create_peer_connection(studio)

    # Store PC to keep it alive
    _peer_connections.add(pc)

    # Start background task to monitor connection
    asyncio.create_task(_run_peer_connection(pc))

    remote_desc = RTCSessionDescription(sdp=offer.sdp, type=offer.type)
    await pc.setRemoteDescription(remote_desc)

    answer = await pc.createAnswer()
    await pc.setLocalDescription(answer)

    return {"sdp": pc.localDescription.sdp, "type": pc.localDescription.type}


def _pointer_event(msg: dict[str, Any]) -> PointerEvent:
    rect = msg.get("rect") or {}
    return PointerEvent(
        kind=PointerKind(msg.get("kind", "up")),
        x=coerce_number(msg.get("x")),
        y=coerce_number(msg.get("y")),
        rect_left=coerce_number(rect.get("left", 0.0)),
        rect_top=coerce_number(rect.get("top", 0.0)),
        rect_width=coerce_number(rect["width"]) if "width" in rect else None,
        rect_height=coerce_number(rect["height"]) if "height" in rect else None,
    )


@app.websocket("/ws/control")
async def ws_control(ws: WebSocket) -> None:
    await ws.accept()

    async def push_progress(progress: CaptureProgress) -> None:
        await ws.send_json(
            {"type": "progress", "progress": progress.progress, "running": progress.running}
        )

    await event_bus.subscribe(PROGRESS_TOPIC, push_progress)
    try:
        while True:
            msg_text = await ws.receive_text()
            try:
                msg = json.loads(msg_text)
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed control message")
                continue

            msg_type = msg.get("type")
            if msg_type == "pointer":
                try:
                    event = _pointer_event(msg)
                except ValueError:
                    logger.warning("Ignoring pointer message with kind %r", msg.get("kind"))
                    continue
                await event_bus.publish_pointer(event)

            elif msg_type == "update":
                await event_bus.publish_layout(
                    LayoutUpdate(
                        element=str(msg.get("element", "")),
                        field=str(msg.get("field", "")),
                        value=coerce_number(msg.get("value")),
                    )
                )

            elif msg_type == "nudge":
                await event_bus.publish_layout(
                    LayoutNudge(
                        element=str(msg.get("element", "")),
                        field=str(msg.get("field", "")),
                        direction=coerce_number(msg.get("direction", 1.0)),
                    )
                )

    except WebSocketDisconnect:
        # Отпущенная кнопка не должна оставить "залипший" drag
        await event_bus.publish_pointer(PointerEvent(kind=PointerKind.CANCEL, x=0.0, y=0.0))
    finally:
        await event_bus.unsubscribe(PROGRESS_TOPIC, push_progress)
