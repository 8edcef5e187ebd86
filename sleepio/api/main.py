# sleepio/api/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sleepio import __version__
from sleepio.api.routes import sleep_routes

app = FastAPI(
    title="Sleep.io API",
    description="API for logging sleep and predicting next night's sleep quality",
    version=__version__
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For development - restrict this in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sleep_routes.router)


@app.get("/")
async def root():
    return {
        "message": "Welcome to the Sleep.io API",
        "version": __version__,
        "documentation": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
