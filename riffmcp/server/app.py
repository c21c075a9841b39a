"""HTTP surface of the primary: JSON-RPC endpoint, health check, generated images."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, Response

from riffmcp import __version__
from riffmcp.server.activity import Transport
from riffmcp.server.dispatcher import RequestDispatcher
from riffmcp.server.images import resolve_image_path

# Set by the stdio proxy so activity entries show where a request came from.
TRANSPORT_HEADER = "X-RiffMCP-Transport"


def create_app(dispatcher: RequestDispatcher) -> FastAPI:
    app = FastAPI(
        title="riffmcp",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.dispatcher = dispatcher

    @app.post("/")
    async def rpc(request: Request) -> Response:
        """Raw JSON-RPC in, raw JSON-RPC out; notifications get an empty 200."""
        body = await request.body()
        via = request.headers.get(TRANSPORT_HEADER, "").lower()
        transport = Transport.STDIO if via == "stdio" else Transport.HTTP
        reply = await dispatcher.handle_bytes(body, transport)
        if reply is None:
            return Response(status_code=200)
        return Response(content=reply, media_type="application/json")

    @app.get("/health")
    async def health():
        return {"status": "healthy", "port": dispatcher.port}

    @app.get("/images/{filename:path}")
    async def image(filename: str):
        try:
            path = resolve_image_path(dispatcher.image_dir, filename)
        except PermissionError:
            raise HTTPException(status_code=403, detail="Forbidden")
        if not path.is_file():
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(str(path), media_type="image/png")

    @app.get("/activity")
    async def activity(limit: int = 50):
        log = dispatcher.activity
        return {
            "requestCount": log.request_count,
            "events": [event.to_dict() for event in log.recent(max(1, limit))],
        }

    return app
