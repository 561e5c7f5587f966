"""
Entry point for the nclex-study API service.

Run with:
    uvicorn nclex_study.api.main:app --reload --port 8100
    python main.py
"""
import uvicorn

from nclex_study.config import get_settings

settings = get_settings()

if __name__ == "__main__":
    uvicorn.run(
        "nclex_study.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
