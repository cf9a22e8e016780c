import logging

from fastapi import FastAPI

from redline.api import router
from redline.core import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

app = FastAPI(
    title="Redline Worker",
    description="Document extraction and redline comparison service",
    version="0.1.0",
)

app.include_router(router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "redline.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
