import uvicorn

from vocabquiz.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "vocabquiz.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
