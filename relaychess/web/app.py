from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse
from typing import Optional, Dict, Any
from pathlib import Path
from loguru import logger
import json
import sys

from ..config import load_config
from ..engine.client import StockfishClient, RetryPolicy, MIN_DEPTH, MAX_DEPTH, clamp_depth
from .coordinator import SessionCoordinator
from .session import SessionRegistry


STATIC_DIR = Path(__file__).parent / "static"

app = FastAPI(
    title="relaychess",
    description="Play chess in the browser against a remote Stockfish",
    version="1.0.0"
)

config: Dict = {}
coordinator: Optional[SessionCoordinator] = None


def configure_logging(log_config: Dict):
    """Route loguru output to stderr and a rotating log file."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=log_config['level']
    )
    if log_config.get('file'):
        logger.add(
            log_config['file'],
            rotation=log_config['rotation'],
            retention=log_config['retention'],
            level="DEBUG"
        )


def build_coordinator(cfg: Dict) -> SessionCoordinator:
    """Wire engine client, session registry and coordinator from configuration."""
    engine_cfg = cfg['engine']
    client = StockfishClient(
        url=engine_cfg['url'],
        timeout=engine_cfg['timeout'],
        retry=RetryPolicy(
            max_attempts=engine_cfg['max_attempts'],
            backoff_seconds=engine_cfg['backoff_seconds'],
            backoff_factor=engine_cfg['backoff_factor']
        )
    )
    registry = SessionRegistry(client, initial_seconds=cfg['game']['initial_seconds'])
    return SessionCoordinator(
        registry,
        tick_seconds=cfg['game']['tick_seconds'],
        notify_on_failure=engine_cfg['notify_on_failure']
    )


@app.on_event("startup")
async def startup_event():
    """Load configuration and create the session coordinator on startup."""
    global config, coordinator

    config = load_config()
    configure_logging(config['logging'])
    logger.info("Starting relaychess server...")

    coordinator = build_coordinator(config)
    app.state.coordinator = coordinator
    logger.info(f"Engine endpoint: {config['engine']['url']}")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop every running clock."""
    if coordinator is not None:
        for session in coordinator.registry:
            coordinator.registry.destroy(session)
    logger.info("relaychess server stopped")


def _depth_or_default(depth: Optional[int]) -> int:
    engine_cfg = config['engine']
    if depth is None:
        depth = engine_cfg['default_depth']
    return clamp_depth(depth, engine_cfg['min_depth'], engine_cfg['max_depth'])


@app.get("/")
async def start_page():
    """Serve the start page with the depth selector."""
    return FileResponse(STATIC_DIR / "start_game.html")


@app.get("/index")
async def game_page(depth: Optional[int] = Query(default=None, ge=MIN_DEPTH, le=MAX_DEPTH)):
    """
    Serve the game page.

    Args:
        depth: Engine search depth chosen on the start page
    """
    logger.info(f"Selected depth: {_depth_or_default(depth)}")
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "active_sessions": len(coordinator.registry) if coordinator else 0,
        "engine": config.get('engine', {}).get('url')
    }


@app.websocket("/ws")
async def game_socket(ws: WebSocket, depth: Optional[int] = None):
    """
    Event channel for one player.

    Frames are JSON objects of the form {"event": name, "data": payload}.
    """
    await ws.accept()

    async def send(event: str, data: Any = None):
        try:
            await ws.send_json({"event": event, "data": data})
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Dropping {event} for closed socket: {e}")

    session = await coordinator.on_connect(send, _depth_or_default(depth))
    logger.info(f"Player connected ({session.session_id})")

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                logger.warning(f"Session {session.session_id}: ignoring binary frame")
                continue
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Session {session.session_id}: ignoring non-JSON frame {raw[:80]!r}")
                continue
            if not isinstance(msg, dict) or "event" not in msg:
                logger.warning(f"Session {session.session_id}: ignoring frame without event {msg!r}")
                continue
            await coordinator.dispatch(session, msg["event"], msg.get("data"))
    except WebSocketDisconnect:
        logger.info(f"Player disconnected ({session.session_id})")
    finally:
        await coordinator.on_disconnect(session)


# mount static files last so routes above take precedence
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
