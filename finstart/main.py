import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finstart.config import settings
from finstart.routes import admin, chat, email, ocr, voice, websocket
from finstart.services.langsmith_tracer import tracer

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

tracer.initialize()

app = FastAPI(title="Finstart Onboarding API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(voice.router)
app.include_router(chat.router)
app.include_router(email.router)
app.include_router(ocr.router)
app.include_router(admin.router)
app.include_router(websocket.router)


@app.get("/")
def home():
    return {"status": "Finstart Onboarding Backend Running"}


def run():
    import uvicorn

    uvicorn.run("finstart.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
