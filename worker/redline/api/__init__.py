from redline.api.routes import router

__all__ = ["router"]
