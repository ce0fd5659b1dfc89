from plangraph.api.routes import router

__all__ = ["router"]
