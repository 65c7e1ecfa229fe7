"""devports FastAPI backend: open ports, owning processes, project restarts."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from devports.config import config
from devports.services import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine.start()
    yield
    await engine.stop()


app = FastAPI(title="devports", version="0.1.0", lifespan=lifespan)

# Mount API routers
from devports.api import ports  # noqa: E402

app.include_router(ports.router, prefix="/api")


@app.get("/")
async def health():
    return {"status": "operational", "service": "devports"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.server.host, port=config.server.port)
