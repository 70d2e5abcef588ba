from projectflow.academics.api.academics import TrackController

__all__ = ["TrackController"]
