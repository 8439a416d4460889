import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rotater import __version__, config
from rotater.routes import ai, climate, dashboard

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="ROTATER Climate Backend",
    description="Climate series, AI insights and assistant for the ROTATER dashboard.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Health",
            "description": "Endpoints for health checks."
        }
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", summary="Root Endpoint")
def read_root():
    return {"message": "Welcome to the ROTATER climate backend!"}


@app.get("/health", summary="Health Check", tags=["Health"])
def health_check():
    return {"status": "ok"}


app.include_router(climate.router)
app.include_router(ai.router)
app.include_router(dashboard.router)


def run():
    import uvicorn
    uvicorn.run("rotater.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
